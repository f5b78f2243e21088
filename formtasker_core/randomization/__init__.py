"""
Value Generation Engine

Produces one value per call from a randomization spec and validates specs
and probability maps before a run.
"""

from .specs import (
    DistributionKind,
    DistributionSpec,
    ExpressionSpec,
    FixedSpec,
    PatternSpec,
    PickSpec,
    RandomizationSpec,
    RangeSpec,
    spec_from_dict,
    spec_to_dict,
    split_text_options,
)
from .engine import generate, generate_pick, generate_range, generate_weighted, generate_normal
from .pattern import generate_from_pattern
from .expression import ExpressionEvaluator, check_syntax
from .validation import (
    SpecValidation,
    validate_spec,
    validate_probabilities,
    validate_field_configs,
    default_probabilities,
)

__all__ = [
    "DistributionKind",
    "DistributionSpec",
    "ExpressionSpec",
    "FixedSpec",
    "PatternSpec",
    "PickSpec",
    "RandomizationSpec",
    "RangeSpec",
    "spec_from_dict",
    "spec_to_dict",
    "split_text_options",
    "generate",
    "generate_pick",
    "generate_range",
    "generate_weighted",
    "generate_normal",
    "generate_from_pattern",
    "ExpressionEvaluator",
    "check_syntax",
    "SpecValidation",
    "validate_spec",
    "validate_probabilities",
    "validate_field_configs",
    "default_probabilities",
]
