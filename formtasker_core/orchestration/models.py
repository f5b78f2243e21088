"""Data models for the submission orchestrator"""

import copy
import math
from dataclasses import dataclass, field
from enum import Enum
from numbers import Real
from typing import Any, Dict, List, Optional, Tuple

from ..randomization import RandomizationSpec, spec_from_dict, spec_to_dict


class FieldMode:
    FIXED = "fixed"
    RANDOM = "random"

    ALL = (FIXED, RANDOM)


class RunStatus(Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"
    FAILED = "failed"


@dataclass
class FieldConfig:
    """Per-field run configuration"""
    field_id: str
    mode: str = FieldMode.FIXED
    spec: Optional[RandomizationSpec] = None
    probabilities: Dict[str, float] = field(default_factory=dict)
    # row key (row index as string, or row label) -> column label -> weight
    grid_probabilities: Dict[str, Dict[str, float]] = field(default_factory=dict)
    text_options: str = ""
    date_range: Optional[Tuple[str, str]] = None
    label: str = ""

    @property
    def is_random(self) -> bool:
        return self.mode == FieldMode.RANDOM

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldConfig":
        spec_data = data.get("spec")
        date_range = data.get("date_range")
        return cls(
            field_id=str(data.get("field_id") or data.get("id") or ""),
            mode=str(data.get("mode") or FieldMode.FIXED).lower(),
            spec=spec_from_dict(spec_data) if spec_data is not None else None,
            probabilities={str(k): v for k, v in (data.get("probabilities") or {}).items()},
            grid_probabilities={
                str(row): {str(col): w for col, w in (cols or {}).items()}
                for row, cols in (data.get("grid_probabilities") or {}).items()
            },
            text_options=str(data.get("text_options") or ""),
            date_range=(str(date_range[0]), str(date_range[1])) if date_range else None,
            label=str(data.get("label") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"field_id": self.field_id, "mode": self.mode}
        if self.label:
            data["label"] = self.label
        if self.spec is not None:
            data["spec"] = spec_to_dict(self.spec)
        if self.probabilities:
            data["probabilities"] = dict(self.probabilities)
        if self.grid_probabilities:
            data["grid_probabilities"] = {k: dict(v) for k, v in self.grid_probabilities.items()}
        if self.text_options:
            data["text_options"] = self.text_options
        if self.date_range:
            data["date_range"] = list(self.date_range)
        return data


def _number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


@dataclass
class RunPlan:
    """Bounds of one run (all durations in seconds)"""
    count: int = 1
    interval_min: float = 2.0
    interval_max: float = 5.0
    stop_on_error: bool = False
    jitter: float = 0.0
    rate_limit: float = 0.0
    ack_timeout: float = 10.0

    def validate(self) -> List[str]:
        errors = []
        if not isinstance(self.count, int) or isinstance(self.count, bool) or self.count < 1:
            errors.append(f"count must be an integer >= 1 (got {self.count!r})")
        if not _number(self.interval_min) or self.interval_min < 0:
            errors.append(f"interval_min must be >= 0 (got {self.interval_min!r})")
        elif not _number(self.interval_max) or self.interval_max < self.interval_min:
            errors.append(f"interval_max must be >= interval_min (got {self.interval_max!r})")
        if not _number(self.jitter) or not 0 <= self.jitter <= 1:
            errors.append(f"jitter must be within [0, 1] (got {self.jitter!r})")
        if not _number(self.rate_limit) or self.rate_limit < 0:
            errors.append(f"rate_limit must be >= 0 (got {self.rate_limit!r})")
        if not _number(self.ack_timeout) or self.ack_timeout <= 0:
            errors.append(f"ack_timeout must be > 0 (got {self.ack_timeout!r})")
        return errors

    @classmethod
    def from_dict(cls, data: Dict[str, Any], defaults: Optional["RunPlan"] = None) -> "RunPlan":
        base = defaults or cls()
        return cls(
            count=data.get("count", base.count),
            interval_min=data.get("interval_min", base.interval_min),
            interval_max=data.get("interval_max", base.interval_max),
            stop_on_error=bool(data.get("stop_on_error", base.stop_on_error)),
            jitter=data.get("jitter", base.jitter),
            rate_limit=data.get("rate_limit", base.rate_limit),
            ack_timeout=data.get("ack_timeout", base.ack_timeout),
        )


@dataclass
class RunError:
    """One failed iteration"""
    iteration_index: int
    message: str
    timestamp: float
    field_id: Optional[str] = None


@dataclass
class RunState:
    """Progress of one run; mutated only by its orchestrator"""
    planned: int
    completed: int = 0
    failed: int = 0
    current_index: int = 0
    is_running: bool = False
    status: RunStatus = RunStatus.IDLE
    errors: List[RunError] = field(default_factory=list)
    started_at: float = 0.0
    last_submission_time: Optional[float] = None
    estimated_time_remaining: Optional[float] = None

    @property
    def processed(self) -> int:
        return self.completed + self.failed

    def snapshot(self) -> "RunState":
        """Detached copy handed to progress callbacks."""
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "planned": self.planned,
            "completed": self.completed,
            "failed": self.failed,
            "current_index": self.current_index,
            "is_running": self.is_running,
            "status": self.status.value,
            "errors": [
                {
                    "iteration_index": e.iteration_index,
                    "message": e.message,
                    "timestamp": e.timestamp,
                    "field_id": e.field_id,
                }
                for e in self.errors
            ],
            "last_submission_time": self.last_submission_time,
            "estimated_time_remaining": self.estimated_time_remaining,
        }
