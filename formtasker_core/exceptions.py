"""
formtasker exceptions
"""

from typing import List, Optional


class FormTaskerError(Exception):
    """Base exception for formtasker"""
    pass


class ValidationError(FormTaskerError):
    """Malformed randomization spec, run plan or probability map.

    Raised before a run starts; nothing has been mutated.
    """

    def __init__(self, errors: List[str], field_ids: Optional[List[str]] = None):
        self.errors = list(errors)
        self.field_ids = list(field_ids or [])
        super().__init__("; ".join(self.errors) or "Validation failed")


class LocatorResolutionError(FormTaskerError):
    """A configured field could not be re-located in the current document"""

    def __init__(self, field_id: str, message: str = ""):
        self.field_id = field_id
        super().__init__(message or f"Field not found: {field_id}")


class GenerationError(FormTaskerError):
    """Expression evaluation failed"""
    pass


class AcknowledgementTimeoutError(FormTaskerError):
    """No acknowledgement phrase appeared within the wait bound"""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Acknowledgement timeout after {timeout:.1f}s")


class ConcurrentRunError(FormTaskerError):
    """A submission run is already in progress"""
    pass


class AdapterError(FormTaskerError):
    """Document adapter failed to write, click or submit"""

    def __init__(self, message: str, field_id: Optional[str] = None):
        self.field_id = field_id
        super().__init__(message)
