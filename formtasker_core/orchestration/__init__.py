"""
Submission Orchestrator

Drives bounded fill -> submit -> acknowledge -> reset runs against a
DocumentAdapter.
"""

from .adapter import DocumentAdapter
from .models import FieldConfig, FieldMode, RunPlan, RunState, RunStatus, RunError
from .acknowledgement import ACKNOWLEDGEMENT_PHRASES, is_acknowledged, wait_for_acknowledgement
from .pacing import compute_delay, interruptible_sleep
from .values import resolve_value
from .orchestrator import SubmissionOrchestrator, validate_run

__all__ = [
    "DocumentAdapter",
    "FieldConfig",
    "FieldMode",
    "RunPlan",
    "RunState",
    "RunStatus",
    "RunError",
    "ACKNOWLEDGEMENT_PHRASES",
    "is_acknowledged",
    "wait_for_acknowledgement",
    "compute_delay",
    "interruptible_sleep",
    "resolve_value",
    "SubmissionOrchestrator",
    "validate_run",
]
