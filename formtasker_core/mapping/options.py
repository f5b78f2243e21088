"""
Option / grid vocabulary extraction.

Labels keep first-seen document order and never repeat an exact (trimmed)
text; empty labels are dropped.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from .field import FieldType, GRID_TYPES
from .node import DocumentNode, normalize_space

DEFAULT_SCALE_VALUES = ["1", "2", "3", "4", "5"]

_CHOICE_ROLES = {"option", "radio", "checkbox"}


def _is_option_node(node: DocumentNode) -> bool:
    if node.tag in ("label", "option"):
        return True
    if node.role in _CHOICE_ROLES:
        return True
    return node.tag == "span" and node.role == "presentation"


def _is_cell(node: DocumentNode) -> bool:
    return node.role in ("radio", "checkbox")


def option_text(node: DocumentNode) -> str:
    """Visible label of an option node (falls back to aria-label / data-value)."""
    text = node.text_content()
    if text:
        return text
    return normalize_space(node.get("aria-label") or node.get("data-value"))


def _unique(texts) -> List[str]:
    seen = set()
    out: List[str] = []
    for text in texts:
        text = (text or "").strip()
        if text and text not in seen:
            seen.add(text)
            out.append(text)
    return out


def extract_choice_options(container: DocumentNode) -> List[str]:
    return _unique(option_text(n) for n in container.find_all(_is_option_node))


def extract_scale_values(container: DocumentNode) -> List[str]:
    candidates = container.find_all(lambda n: n.role == "radio" or n.tag == "label")
    values = _unique(t for t in (option_text(n) for n in candidates) if t.isdigit())
    return values or list(DEFAULT_SCALE_VALUES)


@dataclass
class GridRow:
    """One grid row: label plus its answer cells in column order"""
    label: str
    node: Optional[DocumentNode] = None
    cells: List[DocumentNode] = field(default_factory=list)


def extract_grid_rows(container: DocumentNode) -> List[GridRow]:
    rows: List[GridRow] = []
    headers = container.find_all(lambda n: n.role == "rowheader")
    for idx, header in enumerate(headers):
        row_node = header.closest(lambda n: n.role == "row")
        label = header.text_content() or f"Row {idx + 1}"
        cells = row_node.find_all(_is_cell) if row_node is not None else []
        rows.append(GridRow(label=label, node=row_node, cells=cells))
    return rows


def extract_grid_columns(container: DocumentNode) -> List[str]:
    columns = _unique(h.text_content() for h in container.find_all(lambda n: n.role == "columnheader"))
    if columns:
        return columns
    first_row = container.find(lambda n: n.role == "row" and n.find(_is_cell) is not None)
    if first_row is None:
        return []
    count = len(first_row.find_all(_is_cell))
    return [f"Option {i + 1}" for i in range(count)]


def extract_options(node: DocumentNode, field_type: FieldType) -> dict:
    """
    Vocabulary for ``field_type`` under ``node``.

    Returns:
        {"options": [...]} for choice types, {"rows": [...], "columns": [...]}
        for grids, {} otherwise
    """
    if field_type in (FieldType.SINGLE_CHOICE, FieldType.MULTI_CHOICE, FieldType.DROPDOWN):
        return {"options": extract_choice_options(node)}
    if field_type == FieldType.LINEAR_SCALE:
        return {"options": extract_scale_values(node)}
    if field_type in GRID_TYPES:
        rows = _unique(r.label for r in extract_grid_rows(node))
        return {"rows": rows, "columns": extract_grid_columns(node)}
    return {}
