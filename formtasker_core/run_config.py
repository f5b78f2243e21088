"""
Run configuration files - YAML description of one run.

Example run.yaml:
```yaml
url: "https://docs.example.com/forms/d/e/abc/viewform"
plan:
  count: 20
  interval_min: 3
  interval_max: 8
  jitter: 0.2
  stop_on_error: false
fields:
  - field_id: "1234567"
    label: "How satisfied are you?"
    mode: random
    probabilities: {"Very": 50, "Somewhat": 30, "Not at all": 20}
  - field_id: "7654321"
    label: "Your nickname"
    mode: random
    spec: {type: pattern, pattern: "user_\\d\\d\\d"}
```
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .config import config
from .exceptions import ValidationError
from .mapping import Field
from .orchestration.models import FieldConfig, FieldMode, RunPlan
from .randomization import default_probabilities


@dataclass
class RunConfig:
    """Parsed run configuration."""
    url: str = ""
    plan: RunPlan = field(default_factory=RunPlan)
    fields: List[FieldConfig] = field(default_factory=list)
    source_file: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "plan": {
                "count": self.plan.count,
                "interval_min": self.plan.interval_min,
                "interval_max": self.plan.interval_max,
                "stop_on_error": self.plan.stop_on_error,
                "jitter": self.plan.jitter,
                "rate_limit": self.plan.rate_limit,
                "ack_timeout": self.plan.ack_timeout,
            },
            "fields": [f.to_dict() for f in self.fields],
        }

    def to_yaml(self) -> str:
        return yaml.dump(self.to_dict(), default_flow_style=False, allow_unicode=True, sort_keys=False)


def default_plan() -> RunPlan:
    """Plan defaults taken from the environment configuration."""
    return RunPlan(
        interval_min=config.interval_min,
        interval_max=config.interval_max,
        ack_timeout=config.ack_timeout,
    )


def parse_run_config(data: Dict[str, Any], source_file: str = "") -> RunConfig:
    """
    Build a RunConfig from its mapping form.

    Raises:
        ValidationError: structurally malformed document
    """
    if not isinstance(data, dict):
        raise ValidationError(["Run configuration must be a mapping"])

    plan_data = data.get("plan") or {}
    if not isinstance(plan_data, dict):
        raise ValidationError(["'plan' must be a mapping"])

    field_items = data.get("fields") or []
    if not isinstance(field_items, list):
        raise ValidationError(["'fields' must be a list"])

    configs = []
    errors = []
    for index, item in enumerate(field_items):
        if not isinstance(item, dict):
            errors.append(f"fields[{index}] must be a mapping")
            continue
        try:
            cfg = FieldConfig.from_dict(item)
        except ValidationError as e:
            errors.extend(f"fields[{index}]: {msg}" for msg in e.errors)
            continue
        if not cfg.field_id:
            errors.append(f"fields[{index}] has no field_id")
            continue
        configs.append(cfg)
    if errors:
        raise ValidationError(errors)

    return RunConfig(
        url=str(data.get("url") or ""),
        plan=RunPlan.from_dict(plan_data, defaults=default_plan()),
        fields=configs,
        source_file=source_file,
    )


def load_run_config(path: Union[str, Path]) -> RunConfig:
    """Load a YAML run configuration file."""
    path = Path(path)
    with open(path, 'r', encoding='utf-8') as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValidationError([f"Invalid YAML in {path}: {e}"]) from e
    return parse_run_config(data, source_file=str(path))


def configs_from_fields(fields: List[Field], mode: str = FieldMode.FIXED) -> List[FieldConfig]:
    """Seed one FieldConfig per discovered field (even-split probabilities)."""
    configs = []
    for f in fields:
        cfg = FieldConfig(field_id=f.id, mode=mode, label=f.label)
        if f.type.is_choice and f.options:
            cfg.probabilities = dict(default_probabilities(f.options))
        elif f.type.is_grid and f.grid_columns:
            split = default_probabilities(f.grid_columns)
            cfg.grid_probabilities = {str(i): dict(split) for i, _ in enumerate(f.grid_rows or [])}
        configs.append(cfg)
    return configs


def template_for(url: str, fields: List[Field], plan: Optional[RunPlan] = None) -> RunConfig:
    return RunConfig(url=url, plan=plan or default_plan(), fields=configs_from_fields(fields))
