"""
Randomization specs - one frozen dataclass per variant.

The mapping form used in run configuration files:

```yaml
type: distribution
options: [A, B, C]
kind: weighted
weights: {A: 60, B: 30}
```
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from ..exceptions import ValidationError


class DistributionKind:
    UNIFORM = "uniform"
    NORMAL = "normal"
    WEIGHTED = "weighted"

    ALL = (UNIFORM, NORMAL, WEIGHTED)


@dataclass(frozen=True)
class FixedSpec:
    value: Any = None


@dataclass(frozen=True)
class PickSpec:
    options: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class RangeSpec:
    min: Optional[float] = None
    max: Optional[float] = None


@dataclass(frozen=True)
class PatternSpec:
    expression: str = ""


@dataclass(frozen=True)
class DistributionSpec:
    options: Tuple[Any, ...] = ()
    kind: str = DistributionKind.UNIFORM
    weights: Dict[str, float] = field(default_factory=dict, hash=False, compare=True)


@dataclass(frozen=True)
class ExpressionSpec:
    source: str = ""


RandomizationSpec = Union[FixedSpec, PickSpec, RangeSpec, PatternSpec, DistributionSpec, ExpressionSpec]

# Original tag names accepted on input
_TYPE_ALIASES = {
    "regex": "pattern",
    "custom_js": "expression",
}


def spec_from_dict(data: Dict[str, Any]) -> RandomizationSpec:
    """
    Build a spec from its tagged mapping form.

    Raises:
        ValidationError: unknown or missing ``type``
    """
    if not isinstance(data, dict):
        raise ValidationError([f"Randomization spec must be a mapping, got {type(data).__name__}"])
    raw_type = str(data.get("type") or "").strip().lower()
    spec_type = _TYPE_ALIASES.get(raw_type, raw_type)

    if spec_type == "fixed":
        return FixedSpec(value=data.get("value"))
    if spec_type == "pick":
        return PickSpec(options=tuple(data.get("options") or ()))
    if spec_type == "range":
        return RangeSpec(min=data.get("min"), max=data.get("max"))
    if spec_type == "pattern":
        return PatternSpec(expression=str(data.get("pattern") or data.get("expression") or ""))
    if spec_type == "distribution":
        return DistributionSpec(
            options=tuple(data.get("options") or ()),
            kind=str(data.get("kind") or data.get("distribution") or DistributionKind.UNIFORM).lower(),
            weights={str(k): v for k, v in (data.get("weights") or {}).items()},
        )
    if spec_type == "expression":
        return ExpressionSpec(source=str(data.get("source") or data.get("expression") or ""))
    if not spec_type:
        raise ValidationError(["Randomization type is required"])
    raise ValidationError([f"Unknown randomization type: {raw_type!r}"])


def spec_to_dict(spec: RandomizationSpec) -> Dict[str, Any]:
    if isinstance(spec, FixedSpec):
        return {"type": "fixed", "value": spec.value}
    if isinstance(spec, PickSpec):
        return {"type": "pick", "options": list(spec.options)}
    if isinstance(spec, RangeSpec):
        return {"type": "range", "min": spec.min, "max": spec.max}
    if isinstance(spec, PatternSpec):
        return {"type": "pattern", "pattern": spec.expression}
    if isinstance(spec, DistributionSpec):
        data: Dict[str, Any] = {"type": "distribution", "options": list(spec.options), "kind": spec.kind}
        if spec.weights:
            data["weights"] = dict(spec.weights)
        return data
    if isinstance(spec, ExpressionSpec):
        return {"type": "expression", "source": spec.source}
    raise TypeError(f"Not a randomization spec: {spec!r}")


def split_text_options(raw: Optional[str], delimiter: str = "<and>") -> List[str]:
    """'A<and>B<and> ' -> ['A', 'B']"""
    return [part.strip() for part in (raw or "").split(delimiter) if part.strip()]
