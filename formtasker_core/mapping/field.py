"""
Field model - one detected question.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .locator import Locator


class FieldType(Enum):
    """Question types"""
    SHORT_TEXT = "short-text"
    LONG_TEXT = "long-text"
    SINGLE_CHOICE = "single-choice"
    MULTI_CHOICE = "multi-choice"
    DROPDOWN = "dropdown"
    LINEAR_SCALE = "linear-scale"
    DATE = "date"
    TIME = "time"
    FILE = "file"
    GRID_SINGLE = "grid-single"
    GRID_MULTI = "grid-multi"

    @property
    def is_choice(self) -> bool:
        return self in CHOICE_TYPES

    @property
    def is_grid(self) -> bool:
        return self in GRID_TYPES

    @property
    def is_text(self) -> bool:
        return self in TEXT_TYPES


CHOICE_TYPES = frozenset({
    FieldType.SINGLE_CHOICE,
    FieldType.MULTI_CHOICE,
    FieldType.DROPDOWN,
    FieldType.LINEAR_SCALE,
})
GRID_TYPES = frozenset({FieldType.GRID_SINGLE, FieldType.GRID_MULTI})
TEXT_TYPES = frozenset({FieldType.SHORT_TEXT, FieldType.LONG_TEXT, FieldType.TIME})

STABLE_ATTRIBUTES = [
    "id",
    "aria-label",
    "data-question-id",
    "data-item-id",
    "name",
    "data-question-type",
    "role",
    "type",
]

UNTITLED_LABEL = "Untitled Question"


@dataclass
class Field:
    """A discovered question with its locators and vocabularies"""
    id: str
    type: FieldType
    label: str
    locator_chain: List[Locator] = field(default_factory=list)
    options: Optional[List[str]] = None
    grid_rows: Optional[List[str]] = None
    grid_columns: Optional[List[str]] = None
    attributes: Dict[str, str] = field(default_factory=dict)
    text_content: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "label": self.label,
            "locator_chain": [loc.to_dict() for loc in self.locator_chain],
        }
        if self.options is not None:
            data["options"] = list(self.options)
        if self.grid_rows is not None:
            data["grid_rows"] = list(self.grid_rows)
        if self.grid_columns is not None:
            data["grid_columns"] = list(self.grid_columns)
        if self.attributes:
            data["attributes"] = dict(self.attributes)
        return data
