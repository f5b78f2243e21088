"""
Spec and probability validation.

Validation never raises; errors are collected so a caller can report every
problem at once before a run starts.
"""

import math
from dataclasses import dataclass, field
from numbers import Real
from typing import Any, Dict, List, Mapping, Sequence

from .expression import check_syntax
from .specs import (
    DistributionKind,
    DistributionSpec,
    ExpressionSpec,
    FixedSpec,
    PatternSpec,
    PickSpec,
    RandomizationSpec,
    RangeSpec,
)

PROBABILITY_TOTAL = 100.0
PROBABILITY_TOLERANCE = 0.1


@dataclass
class SpecValidation:
    valid: bool
    errors: List[str] = field(default_factory=list)


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


def validate_spec(spec: RandomizationSpec) -> SpecValidation:
    """
    Check a spec for structural correctness.

    Args:
        spec: Any randomization spec variant

    Returns:
        SpecValidation with every error found (empty when valid)
    """
    errors: List[str] = []

    if isinstance(spec, FixedSpec):
        pass
    elif isinstance(spec, PickSpec):
        if not spec.options:
            errors.append("Pick needs at least one option")
    elif isinstance(spec, RangeSpec):
        if not _is_number(spec.min) or not _is_number(spec.max):
            errors.append("Range needs numeric min and max")
        elif spec.min > spec.max:
            errors.append(f"Range min ({spec.min}) is greater than max ({spec.max})")
        elif math.ceil(spec.min) > math.floor(spec.max):
            errors.append(f"Range [{spec.min}, {spec.max}] contains no integer")
    elif isinstance(spec, PatternSpec):
        if not spec.expression:
            errors.append("Pattern must not be empty")
    elif isinstance(spec, DistributionSpec):
        if not spec.options:
            errors.append("Distribution needs at least one option")
        if spec.kind not in DistributionKind.ALL:
            errors.append(f"Unknown distribution kind: {spec.kind!r}")
        for option, weight in (spec.weights or {}).items():
            if not _is_number(weight) or weight < 0:
                errors.append(f"Weight for {option!r} must be a non-negative number")
    elif isinstance(spec, ExpressionSpec):
        if not spec.source or not spec.source.strip():
            errors.append("Expression must not be empty")
        else:
            syntax_error = check_syntax(spec.source)
            if syntax_error:
                errors.append(f"Invalid expression: {syntax_error}")
    else:
        errors.append(f"Not a randomization spec: {spec!r}")

    return SpecValidation(valid=not errors, errors=errors)


def default_probabilities(options: Sequence[str]) -> Dict[str, int]:
    """Even integer split; the remainder goes to the first options.

    >>> default_probabilities(["A", "B", "C"])
    {'A': 34, 'B': 33, 'C': 33}
    """
    count = len(options)
    if count == 0:
        return {}
    base, remainder = divmod(int(PROBABILITY_TOTAL), count)
    return {option: base + (1 if i < remainder else 0) for i, option in enumerate(options)}


def _sum_error(name: str, probabilities: Mapping[str, Any]) -> str:
    values = list(probabilities.values())
    if not all(_is_number(v) for v in values):
        return f"{name}: probabilities must be numbers"
    if any(v < 0 for v in values):
        return f"{name}: probabilities must not be negative"
    total = sum(values)
    if abs(total - PROBABILITY_TOTAL) > PROBABILITY_TOLERANCE:
        return f"{name}: probabilities sum to {total:g}, expected {PROBABILITY_TOTAL:g}"
    return ""


def validate_probabilities(field: Any, config: Any) -> List[str]:
    """
    Sum-check the probability maps of one random-mode field.

    Choice and scale fields check ``config.probabilities``; grid fields check
    each row of ``config.grid_probabilities``. Empty maps fall back to an
    even split and are always valid.

    Args:
        field: Discovered Field (or None when it is not in the document)
        config: FieldConfig for the same field

    Returns:
        List of error messages naming the field
    """
    if getattr(config, "mode", None) != "random":
        return []

    name = getattr(config, "label", "") or getattr(config, "field_id", "") or getattr(field, "id", "")
    errors: List[str] = []

    probabilities = getattr(config, "probabilities", None) or {}
    if probabilities and (field is None or field.type.is_choice):
        error = _sum_error(name, probabilities)
        if error:
            errors.append(error)

    grid_probabilities = getattr(config, "grid_probabilities", None) or {}
    if grid_probabilities and (field is None or field.type.is_grid):
        for row_key, row in grid_probabilities.items():
            if not row:
                continue
            error = _sum_error(f"{name} [row {row_key}]", row)
            if error:
                errors.append(error)

    return errors


def validate_field_configs(fields: Sequence[Any], configs: Sequence[Any]) -> Dict[str, List[str]]:
    """
    Validate every random-mode config against the discovered fields.

    Returns:
        Mapping of field id -> errors, only for fields with errors
    """
    by_id = {f.id: f for f in fields}
    problems: Dict[str, List[str]] = {}
    for config in configs:
        errors = []
        spec = getattr(config, "spec", None)
        if getattr(config, "mode", None) == "random" and spec is not None:
            result = validate_spec(spec)
            errors.extend(f"{config.field_id}: {e}" for e in result.errors)
        errors.extend(validate_probabilities(by_id.get(config.field_id), config))
        if errors:
            problems[config.field_id] = errors
    return problems
