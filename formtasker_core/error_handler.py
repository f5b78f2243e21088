"""
User-Friendly Error Handler.

Converts technical errors into helpful messages with actionable suggestions.
"""

from typing import Dict, Optional
import logging

from .exceptions import (
    AcknowledgementTimeoutError,
    AdapterError,
    ConcurrentRunError,
    LocatorResolutionError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def format_user_friendly_error(
    error: Exception,
    context: str = "general",
    technical_details: Optional[str] = None
) -> Dict:
    """
    Convert technical error to user-friendly message.

    Args:
        error: The exception that occurred
        context: Context where error occurred (e.g., "run", "discover")
        technical_details: Additional technical information

    Returns:
        Dictionary with user-friendly error information:
        {
            "message": str,          # User-friendly message
            "suggestion": str,       # Actionable suggestion
            "technical": str,        # Technical details
            "severity": str,         # "critical", "error", "warning"
            "can_retry": bool        # Whether retry might help
        }
    """
    error_str = str(error)

    for error_type, friendly_error in TYPE_MAPPINGS:
        if isinstance(error, error_type):
            result = friendly_error.copy()
            result["technical"] = technical_details or error_str
            return result

    for pattern, friendly_error in ERROR_MAPPINGS.items():
        if pattern.lower() in error_str.lower():
            result = friendly_error.copy()
            result["technical"] = technical_details or error_str
            logger.debug(f"Mapped error to user-friendly: {result['message']}")
            return result

    return {
        "message": "An unexpected error occurred",
        "suggestion": "Check the technical log or try again",
        "technical": technical_details or error_str,
        "severity": "error",
        "can_retry": True
    }


# Exception types checked before message patterns
TYPE_MAPPINGS = [
    (ValidationError, {
        "message": "The run configuration is invalid",
        "suggestion": "Fix the listed fields (probabilities must sum to 100, ranges need min <= max)",
        "severity": "error",
        "can_retry": False
    }),
    (ConcurrentRunError, {
        "message": "A run is already in progress",
        "suggestion": "Stop the current run or wait for it to finish",
        "severity": "warning",
        "can_retry": True
    }),
    (LocatorResolutionError, {
        "message": "A configured field was not found in the form",
        "suggestion": "The form may have changed. Run 'formtasker discover' again and update the field ids",
        "severity": "error",
        "can_retry": False
    }),
    (AcknowledgementTimeoutError, {
        "message": "The form did not confirm the submission in time",
        "suggestion": "Increase plan.ack_timeout or check whether required fields are left empty",
        "severity": "warning",
        "can_retry": True
    }),
    (AdapterError, {
        "message": "The browser could not interact with the form",
        "suggestion": "Check that the form is still open and its fields are visible",
        "severity": "error",
        "can_retry": True
    }),
]

# Error mappings: pattern -> user-friendly info
ERROR_MAPPINGS = {
    "timeout": {
        "message": "The page took too long to respond",
        "suggestion": "Check your connection and that the form is reachable, then try again",
        "severity": "warning",
        "can_retry": True
    },
    "net::err": {
        "message": "Could not connect to the page",
        "suggestion": "Check that the URL is correct and the page is reachable",
        "severity": "error",
        "can_retry": True
    },
    "target closed": {
        "message": "The browser was closed during the operation",
        "suggestion": "Run the task again",
        "severity": "error",
        "can_retry": True
    },
    "executable doesn't exist": {
        "message": "The Playwright browser is not installed",
        "suggestion": "Install it with: playwright install chromium",
        "severity": "critical",
        "can_retry": False
    },
    "no such file": {
        "message": "The run configuration file does not exist",
        "suggestion": "Check the path passed on the command line",
        "severity": "error",
        "can_retry": False
    },
    "permission denied": {
        "message": "Not allowed to perform the operation",
        "suggestion": "Check file permissions of the log directory and configuration file",
        "severity": "error",
        "can_retry": False
    },
}


def format_error_for_logging(error: Exception, context: str = "") -> str:
    """
    Format error for structured logging.

    Args:
        error: The exception
        context: Additional context

    Returns:
        Formatted error string for logs
    """
    friendly = format_user_friendly_error(error, context)

    lines = [
        f"❌ {friendly['message']}",
        f"💡 {friendly['suggestion']}",
        f"🔧 Technical: {friendly['technical']}"
    ]

    if context:
        lines.insert(0, f"📍 Context: {context}")

    return "\n".join(lines)
