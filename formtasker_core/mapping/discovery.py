"""
Field discovery - enumerate, group, classify and describe questions.

Usage:
    from formtasker_core.mapping import discover

    root = await adapter.snapshot()
    fields = discover(root)
"""

import logging
from typing import Dict, List, Optional

from .classifier import TEXT_INPUT_TYPES, classify
from .field import Field, GRID_TYPES, CHOICE_TYPES, STABLE_ATTRIBUTES, UNTITLED_LABEL
from .locator import locate
from .node import DocumentNode, normalize_space
from .options import extract_options
from .selectors import select_all

logger = logging.getLogger(__name__)

LABEL_MAX_CHARS = 100
TEXT_CONTENT_CHARS = 200

CANDIDATE_SELECTORS = [
    "[data-question-id]",
    "[role='textbox']",
    "[role='radio']",
    "[role='checkbox']",
    "[role='listbox']",
    "input[type='file']",
    "input[type='date']",
    "input[type='time']",
    "input[name^='entry.']",
    "textarea",
    "select",
]

_HEADING_TAGS = {"h1", "h2", "h3", "h4", "h5", "h6", "legend"}


def find_candidates(root: DocumentNode) -> List[DocumentNode]:
    """Nodes matching any candidate selector, de-duplicated, document order."""
    matched = set()
    for selector in CANDIDATE_SELECTORS:
        for node in select_all(root, selector):
            if node.tag == "input" and node.get("type").lower() == "hidden":
                continue
            matched.add(id(node))
    # text-like inputs; a missing type means text
    for node in select_all(root, "input"):
        if node.get("type").lower() in TEXT_INPUT_TYPES or not node.get("type"):
            matched.add(id(node))
    return [n for n in root.iter() if id(n) in matched]


def _is_container(node: DocumentNode) -> bool:
    return node.has("data-question-id") or node.has("data-item-id") or node.role == "listitem"


def question_container(node: DocumentNode) -> DocumentNode:
    return node.closest(_is_container) or node


def entry_id(container: DocumentNode) -> Optional[str]:
    """Structural id from a descendant ``name="entry.<id>"`` control."""
    for node in container.iter():
        name = node.get("name")
        if node.tag in ("input", "textarea", "select") and name.startswith("entry."):
            cleaned = name[len("entry."):].replace("_sentinel", "")
            if cleaned:
                return cleaned
    return None


def derive_field_id(container: DocumentNode, index: int) -> str:
    return (
        entry_id(container)
        or container.get("data-question-id")
        or container.get("data-item-id")
        or f"q-{index}"
    )


def _heading_text(container: DocumentNode) -> str:
    heading = container.find(lambda n: n.role == "heading" or n.tag in _HEADING_TAGS)
    return heading.text_content() if heading is not None else ""


def extract_label(container: DocumentNode, target: DocumentNode) -> str:
    for candidate in (
        container.get("aria-label"),
        _heading_text(container),
        target.get("placeholder"),
        container.text_content(),
        target.get("aria-label"),
    ):
        text = normalize_space(candidate)
        if text:
            return text[:LABEL_MAX_CHARS]
    return UNTITLED_LABEL


def _classification_target(container: DocumentNode, controls: List[DocumentNode]) -> DocumentNode:
    if container.get("data-question-type"):
        return container
    for control in controls:
        if control is not container:
            return control
    return container


def build_field(field_id: str, container: DocumentNode, controls: List[DocumentNode]) -> Field:
    target = _classification_target(container, controls)
    field_type = classify(target)
    vocab = extract_options(container, field_type)

    result = Field(
        id=field_id,
        type=field_type,
        label=extract_label(container, target),
        locator_chain=locate(container),
        attributes={k: target.get(k) for k in STABLE_ATTRIBUTES if target.get(k)},
        text_content=container.text_content()[:TEXT_CONTENT_CHARS],
    )
    if field_type in CHOICE_TYPES and vocab.get("options"):
        result.options = vocab["options"]
    if field_type in GRID_TYPES:
        result.grid_rows = vocab.get("rows", [])
        result.grid_columns = vocab.get("columns", [])
    return result


def discover(root: DocumentNode) -> List[Field]:
    """
    Discover all questions in a document snapshot.

    Returns:
        Fields in document order; ids are unique and stable for an
        unchanged document
    """
    groups: Dict[str, DocumentNode] = {}
    controls: Dict[str, List[DocumentNode]] = {}
    order: List[str] = []
    containers_seen: Dict[int, str] = {}

    for index, node in enumerate(find_candidates(root)):
        container = question_container(node)
        field_id = containers_seen.get(id(container))
        if field_id is None:
            field_id = derive_field_id(container, index)
            if field_id in groups:
                logger.debug(f"Duplicate field id {field_id!r}, keeping first occurrence")
                continue
            containers_seen[id(container)] = field_id
            groups[field_id] = container
            controls[field_id] = []
            order.append(field_id)
        controls[field_id].append(node)

    fields = [build_field(fid, groups[fid], controls[fid]) for fid in order]
    logger.debug(f"Discovered {len(fields)} field(s)")
    return fields
