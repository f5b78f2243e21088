"""
formtasker_core package: field discovery, value generation and submission runs

Usage:
    from formtasker_core import SubmissionOrchestrator, RunPlan, FieldConfig
    from formtasker_core.adapters import PlaywrightDocumentAdapter, open_page

    async with open_page(url) as page:
        orchestrator = SubmissionOrchestrator(PlaywrightDocumentAdapter(page))
        state = await orchestrator.start(RunPlan(count=5), configs)
"""
from .config import Config, config
from .exceptions import (
    FormTaskerError,
    ValidationError,
    LocatorResolutionError,
    GenerationError,
    AcknowledgementTimeoutError,
    ConcurrentRunError,
    AdapterError,
)
from .mapping import DocumentNode, Field, FieldType, discover, fuzzy_match
from .randomization import generate, validate_spec
from .orchestration import (
    DocumentAdapter,
    FieldConfig,
    RunPlan,
    RunState,
    RunStatus,
    SubmissionOrchestrator,
)
from .run_config import RunConfig, load_run_config

__version__ = "0.1.0"

__all__ = [
    "Config",
    "config",
    "FormTaskerError",
    "ValidationError",
    "LocatorResolutionError",
    "GenerationError",
    "AcknowledgementTimeoutError",
    "ConcurrentRunError",
    "AdapterError",
    "DocumentNode",
    "Field",
    "FieldType",
    "discover",
    "fuzzy_match",
    "generate",
    "validate_spec",
    "DocumentAdapter",
    "FieldConfig",
    "RunPlan",
    "RunState",
    "RunStatus",
    "SubmissionOrchestrator",
    "RunConfig",
    "load_run_config",
]
