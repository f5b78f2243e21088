"""
Value generation - one value per call from a randomization spec.

Usage:
    from formtasker_core.randomization import generate, RangeSpec

    value = generate(RangeSpec(min=1, max=10))
"""

import logging
import math
import random
from typing import Any, Dict, Optional, Sequence, assert_never

from ..exceptions import GenerationError
from .expression import ExpressionEvaluator
from .pattern import generate_from_pattern
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

logger = logging.getLogger(__name__)

DEFAULT_RANGE_MIN = 0
DEFAULT_RANGE_MAX = 100


def _rng(rng: Optional[random.Random]) -> random.Random:
    return rng if rng is not None else random.Random()


def generate_pick(options: Sequence[Any], rng: Optional[random.Random] = None) -> Any:
    if not options:
        return None
    rng = _rng(rng)
    return options[int(rng.random() * len(options))]


def generate_range(low: float, high: float, rng: Optional[random.Random] = None) -> Optional[int]:
    """Integer uniformly drawn from [low, high], both inclusive; None when no integer lies inside."""
    rng = _rng(rng)
    low, high = int(math.ceil(low)), int(math.floor(high))
    if low > high:
        return None
    return int(math.floor(rng.random() * (high - low + 1))) + low


def generate_weighted(options: Sequence[Any], weights: Dict[str, float], rng: Optional[random.Random] = None) -> Any:
    """Cumulative-weight draw; options missing from ``weights`` weigh 1."""
    if not options:
        return None
    rng = _rng(rng)
    option_weights = []
    for option in options:
        weight = weights.get(str(option))
        option_weights.append(1.0 if weight is None else float(weight))
    total = sum(option_weights)
    if total <= 0:
        return generate_pick(options, rng)

    remaining = rng.random() * total
    for option, weight in zip(options, option_weights):
        if weight <= 0:
            continue
        remaining -= weight
        if remaining <= 0:
            return option
    return options[-1]


def generate_normal(options: Sequence[Any], rng: Optional[random.Random] = None) -> Any:
    """Box-Muller sample mapped onto the option list (centre-heavy)."""
    if not options:
        return None
    rng = _rng(rng)
    u1 = rng.random() or 1e-12
    u2 = rng.random()
    z = math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)
    index = max(0, min(len(options) - 1, math.floor(((z + 3) / 6) * len(options))))
    return options[index]


def generate_from_distribution(spec: DistributionSpec, rng: Optional[random.Random] = None) -> Any:
    options = list(spec.options)
    if spec.kind == DistributionKind.WEIGHTED:
        return generate_weighted(options, spec.weights or {}, rng)
    if spec.kind == DistributionKind.NORMAL:
        return generate_normal(options, rng)
    return generate_pick(options, rng)


def evaluate_expression(source: str, rng: Optional[random.Random] = None) -> Any:
    """Evaluate in the sandbox; any failure yields None."""
    try:
        return ExpressionEvaluator(rng).evaluate(source)
    except GenerationError as e:
        logger.debug(f"Expression evaluation failed for {source!r}: {e}")
        return None


def generate(spec: RandomizationSpec, rng: Optional[random.Random] = None) -> Any:
    """
    Produce one value for ``spec``.

    Args:
        spec: Any randomization spec variant
        rng: Optional random source (seeded in tests)

    Returns:
        The generated value; None for empty option lists and failed expressions
    """
    if isinstance(spec, FixedSpec):
        return spec.value
    elif isinstance(spec, PickSpec):
        return generate_pick(list(spec.options), rng)
    elif isinstance(spec, RangeSpec):
        low = DEFAULT_RANGE_MIN if spec.min is None else spec.min
        high = DEFAULT_RANGE_MAX if spec.max is None else spec.max
        return generate_range(low, high, rng)
    elif isinstance(spec, PatternSpec):
        return generate_from_pattern(spec.expression, _rng(rng))
    elif isinstance(spec, DistributionSpec):
        return generate_from_distribution(spec, rng)
    elif isinstance(spec, ExpressionSpec):
        return evaluate_expression(spec.source, rng)
    else:
        assert_never(spec)
