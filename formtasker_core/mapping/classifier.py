"""
Question type classification.

Rules are evaluated in a fixed order and the first match wins:

1. explicit ``data-question-type`` marker
2. tag / input-type defaults
3. ARIA role
4. content heuristics over visible text and aria-label
5. short-text

Reordering the rules changes outcomes for real documents; keep it stable.
"""

from typing import List, Optional, Tuple

from .field import FieldType
from .node import DocumentNode

# Substring -> type. Grid markers precede their plain counterparts.
_MARKER_RULES: List[Tuple[str, FieldType]] = [
    ("grid_checkbox", FieldType.GRID_MULTI),
    ("grid_radio", FieldType.GRID_SINGLE),
    ("paragraph", FieldType.LONG_TEXT),
    ("short_text", FieldType.SHORT_TEXT),
    ("radio", FieldType.SINGLE_CHOICE),
    ("checkbox", FieldType.MULTI_CHOICE),
    ("dropdown", FieldType.DROPDOWN),
    ("linear", FieldType.LINEAR_SCALE),
    ("date", FieldType.DATE),
    ("time", FieldType.TIME),
    ("file", FieldType.FILE),
]

TEXT_INPUT_TYPES = {"text", "email", "number", "tel", "url", "search"}

_INPUT_TYPE_RULES = {
    "file": FieldType.FILE,
    "date": FieldType.DATE,
    "time": FieldType.TIME,
    "radio": FieldType.SINGLE_CHOICE,
    "checkbox": FieldType.MULTI_CHOICE,
}


def _by_marker(node: DocumentNode) -> Optional[FieldType]:
    marker = node.get("data-question-type").lower()
    if not marker:
        return None
    for needle, field_type in _MARKER_RULES:
        if needle in marker:
            return field_type
    return None


def _by_tag(node: DocumentNode) -> Optional[FieldType]:
    if node.tag == "input":
        input_type = node.get("type").lower()
        if input_type in TEXT_INPUT_TYPES:
            return FieldType.SHORT_TEXT
        if input_type in _INPUT_TYPE_RULES:
            return _INPUT_TYPE_RULES[input_type]
    if node.tag == "textarea":
        return FieldType.LONG_TEXT
    if node.tag == "select":
        return FieldType.DROPDOWN
    return None


def _in_grid_row(node: DocumentNode) -> bool:
    return any(a.role == "row" for a in node.ancestors())


def _by_role(node: DocumentNode) -> Optional[FieldType]:
    role = node.role
    if role == "radio":
        return FieldType.GRID_SINGLE if _in_grid_row(node) else FieldType.SINGLE_CHOICE
    if role == "checkbox":
        return FieldType.GRID_MULTI if _in_grid_row(node) else FieldType.MULTI_CHOICE
    if role == "listbox":
        return FieldType.DROPDOWN
    if role == "textbox" and node.get("aria-multiline").lower() == "true":
        return FieldType.LONG_TEXT
    return None


def _by_content(node: DocumentNode) -> Optional[FieldType]:
    text = node.text_content().lower()
    aria_label = node.get("aria-label").lower()
    if "scale" in text or "scale" in aria_label:
        return FieldType.LINEAR_SCALE
    if "file" in text or "file" in aria_label:
        return FieldType.FILE
    if "check" in text or "checkbox" in aria_label:
        return FieldType.MULTI_CHOICE
    if "select" in text or "choose" in aria_label:
        return FieldType.DROPDOWN
    return None


_RULES = (_by_marker, _by_tag, _by_role, _by_content)


def classify(node: DocumentNode) -> FieldType:
    """Classify a node. Never fails; falls back to short-text."""
    for rule in _RULES:
        field_type = rule(node)
        if field_type is not None:
            return field_type
    return FieldType.SHORT_TEXT
