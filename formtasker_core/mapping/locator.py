"""
Locator chains - ordered, independently re-resolvable ways to find a field.

Priority (most specific first):
1. data-question-id attribute
2. data-item-id attribute
3. element id (skipped when it looks generated)
4. name attribute
5. aria-label attribute
6. synthesized relative path (always present)
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from .node import DocumentNode
from .selectors import SelectorSyntaxError, select_one

logger = logging.getLogger(__name__)

LABEL_FRAGMENT_CHARS = 20

_TRANSIENT_PATTERNS = [
    re.compile(r"tmp", re.IGNORECASE),
    re.compile(r"^:r[0-9a-z]*:$"),          # React useId
    re.compile(r"[0-9a-f]{8,}", re.IGNORECASE),  # hashes / uuids
    re.compile(r"^ember\d+$"),
    re.compile(r"^(react|mui|radix|headlessui)-", re.IGNORECASE),
]

_TRANSIENT_CLASS_PATTERNS = [
    re.compile(r"tmp", re.IGNORECASE),
    re.compile(r"^css-[0-9a-z]+$"),
    re.compile(r"^sc-[0-9a-zA-Z]+$"),
    re.compile(r"^(is|has)-(focused|active|hover|hovered|selected|checked|disabled)$"),
]


class LocatorStrategy(Enum):
    """How a locator expression was derived"""
    QUESTION_ID = "question_id"
    ITEM_ID = "item_id"
    ELEMENT_ID = "element_id"
    NAME = "name"
    ARIA_LABEL = "aria_label"
    RELATIVE_PATH = "relative_path"


@dataclass(frozen=True)
class Locator:
    strategy: LocatorStrategy
    expression: str

    def to_dict(self) -> dict:
        return {"strategy": self.strategy.value, "expression": self.expression}

    @classmethod
    def from_dict(cls, data: dict) -> "Locator":
        return cls(strategy=LocatorStrategy(data["strategy"]), expression=data["expression"])


def is_transient_id(value: str) -> bool:
    return any(p.search(value) for p in _TRANSIENT_PATTERNS)


def is_transient_class(token: str) -> bool:
    return any(p.search(token) for p in _TRANSIENT_CLASS_PATTERNS)


def escape_attribute_value(value: str) -> str:
    """Escape a value for use inside a double-quoted attribute test."""
    return re.sub(r'(["\\])', r"\\\1", value)


def _escape_ident(value: str) -> str:
    return re.sub(r"([^A-Za-z0-9_\-])", r"\\\1", value)


def locate(node: DocumentNode) -> List[Locator]:
    """Build the locator chain for ``node``. Never fails."""
    chain: List[Locator] = []

    question_id = node.get("data-question-id")
    if question_id:
        chain.append(Locator(LocatorStrategy.QUESTION_ID,
                             f'[data-question-id="{escape_attribute_value(question_id)}"]'))

    item_id = node.get("data-item-id")
    if item_id:
        chain.append(Locator(LocatorStrategy.ITEM_ID,
                             f'[data-item-id="{escape_attribute_value(item_id)}"]'))

    element_id = node.element_id
    if element_id and not is_transient_id(element_id):
        chain.append(Locator(LocatorStrategy.ELEMENT_ID, f"#{_escape_ident(element_id)}"))

    name = node.get("name")
    if name:
        chain.append(Locator(LocatorStrategy.NAME, f'[name="{escape_attribute_value(name)}"]'))

    aria_label = node.get("aria-label")
    if aria_label:
        chain.append(Locator(LocatorStrategy.ARIA_LABEL,
                             f'[aria-label="{escape_attribute_value(aria_label)}"]'))

    chain.append(Locator(LocatorStrategy.RELATIVE_PATH, build_relative_path(node)))
    return chain


def _path_segment(node: DocumentNode) -> str:
    segment = node.tag or "*"
    stable = [c for c in node.classes if not is_transient_class(c)]
    if stable:
        segment += "".join(f".{_escape_ident(c)}" for c in stable)

    question_id = node.get("data-question-id")
    aria_label = node.get("aria-label")
    if question_id:
        segment += f'[data-question-id="{escape_attribute_value(question_id)}"]'
    elif aria_label:
        fragment = escape_attribute_value(aria_label[:LABEL_FRAGMENT_CHARS])
        segment += f'[aria-label*="{fragment}"]'

    if node.siblings_of_type() > 1:
        segment += f":nth-of-type({node.nth_of_type()})"
    return segment


def build_relative_path(node: DocumentNode) -> str:
    """Path of ancestor segments walked up to the root (root excluded).

    Stops early at an ancestor carrying a stable id.
    """
    parts: List[str] = []
    current: Optional[DocumentNode] = node
    while current is not None and current.parent is not None:
        if current.element_id and not is_transient_id(current.element_id):
            parts.insert(0, f"{current.tag}#{_escape_ident(current.element_id)}")
            break
        parts.insert(0, _path_segment(current))
        current = current.parent
    if not parts:
        # Root node itself
        parts.append(node.tag or "*")
    return " > ".join(parts)


def resolve(root: DocumentNode, expression: str) -> Optional[DocumentNode]:
    """Resolve one locator expression against a snapshot."""
    try:
        return select_one(root, expression)
    except SelectorSyntaxError as e:
        logger.debug(f"Unresolvable locator {expression!r}: {e}")
        return None


def resolve_chain(root: DocumentNode, chain: List[Locator]) -> Tuple[Optional[Locator], Optional[DocumentNode]]:
    """First locator in ``chain`` that resolves wins."""
    for locator in chain:
        node = resolve(root, locator.expression)
        if node is not None:
            return locator, node
    return None, None
