"""
Document node tree - the markup-independent view FDM operates over.

Adapters serialize whatever they drive (a Playwright page, a test fixture)
into this tree; nothing in the core touches a concrete DOM API.

Usage:
    from formtasker_core.mapping.node import DocumentNode, element

    root = element("form", {},
        element("div", {"data-question-id": "q1", "role": "listitem"},
            element("input", {"type": "text", "name": "entry.1"}),
        ),
    )
"""

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional

_WS_RE = re.compile(r"\s+")


def normalize_space(text: Any) -> str:
    return _WS_RE.sub(" ", str(text or "")).strip()


@dataclass(eq=False)
class DocumentNode:
    """One element of a document snapshot"""
    tag: str
    attributes: Dict[str, str] = field(default_factory=dict)
    text: str = ""  # direct text only, descendants excluded
    children: List["DocumentNode"] = field(default_factory=list)
    parent: Optional["DocumentNode"] = field(default=None, repr=False)
    visible: bool = True

    def __post_init__(self):
        self.tag = (self.tag or "").lower()
        for child in self.children:
            child.parent = self

    def append(self, child: "DocumentNode") -> "DocumentNode":
        child.parent = self
        self.children.append(child)
        return child

    def get(self, name: str, default: str = "") -> str:
        value = self.attributes.get(name)
        return default if value is None else str(value)

    def has(self, name: str) -> bool:
        return name in self.attributes

    @property
    def element_id(self) -> str:
        return self.get("id")

    @property
    def role(self) -> str:
        return self.get("role").lower()

    @property
    def classes(self) -> List[str]:
        return [c for c in self.get("class").split() if c]

    def text_content(self) -> str:
        """Visible text of this node and its descendants, whitespace-normalized."""
        parts = []
        for node in self.iter():
            if node.visible and node.text:
                parts.append(node.text)
        return normalize_space(" ".join(parts))

    def iter(self) -> Iterator["DocumentNode"]:
        """Self and descendants, document order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def iter_descendants(self) -> Iterator["DocumentNode"]:
        it = self.iter()
        next(it)
        yield from it

    def ancestors(self) -> Iterator["DocumentNode"]:
        current = self.parent
        while current is not None:
            yield current
            current = current.parent

    def closest(self, predicate: Callable[["DocumentNode"], bool]) -> Optional["DocumentNode"]:
        if predicate(self):
            return self
        for ancestor in self.ancestors():
            if predicate(ancestor):
                return ancestor
        return None

    def find_all(self, predicate: Callable[["DocumentNode"], bool]) -> List["DocumentNode"]:
        return [n for n in self.iter_descendants() if predicate(n)]

    def find(self, predicate: Callable[["DocumentNode"], bool]) -> Optional["DocumentNode"]:
        for node in self.iter_descendants():
            if predicate(node):
                return node
        return None

    def root(self) -> "DocumentNode":
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    def nth_of_type(self) -> int:
        """1-based position among siblings sharing the tag."""
        if self.parent is None:
            return 1
        same = [c for c in self.parent.children if c.tag == self.tag]
        return next(i for i, c in enumerate(same, 1) if c is self)

    def siblings_of_type(self) -> int:
        if self.parent is None:
            return 1
        return sum(1 for c in self.parent.children if c.tag == self.tag)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DocumentNode":
        """Build a tree from the nested dict form produced by adapters."""
        children = [cls.from_dict(c) for c in data.get("children") or []]
        return cls(
            tag=data.get("tag") or "div",
            attributes={str(k): str(v) for k, v in (data.get("attributes") or {}).items()},
            text=data.get("text") or "",
            children=children,
            visible=bool(data.get("visible", True)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tag": self.tag,
            "attributes": dict(self.attributes),
            "text": self.text,
            "visible": self.visible,
            "children": [c.to_dict() for c in self.children],
        }


def element(tag: str, attributes: Optional[Dict[str, str]] = None, *children: DocumentNode, text: str = "") -> DocumentNode:
    """Shorthand constructor used by adapters and fixtures."""
    return DocumentNode(tag=tag, attributes=dict(attributes or {}), text=text, children=list(children))
