"""
Minimal selector engine for locator expressions.

Supports the subset of CSS that locator chains are rendered in, so a chain
built from one snapshot can be re-resolved against a later one:

    tag, #id, .class, [attr], [attr="v"], [attr*="v"], [attr^="v"],
    :nth-of-type(n), child (" > ") and descendant (" ") combinators.

Browser adapters hand the same strings to the native engine.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .node import DocumentNode


class SelectorSyntaxError(ValueError):
    pass


@dataclass
class AttributeTest:
    name: str
    op: Optional[str] = None  # None (presence), "=", "*=", "^="
    value: str = ""

    def matches(self, node: DocumentNode) -> bool:
        if not node.has(self.name):
            return False
        actual = node.get(self.name)
        if self.op is None:
            return True
        if self.op == "=":
            return actual == self.value
        if self.op == "*=":
            return self.value in actual
        if self.op == "^=":
            return actual.startswith(self.value)
        return False


@dataclass
class Compound:
    tag: Optional[str] = None
    element_id: Optional[str] = None
    classes: List[str] = field(default_factory=list)
    attributes: List[AttributeTest] = field(default_factory=list)
    nth_of_type: Optional[int] = None

    def matches(self, node: DocumentNode) -> bool:
        if self.tag and self.tag != "*" and node.tag != self.tag:
            return False
        if self.element_id is not None and node.element_id != self.element_id:
            return False
        if self.classes:
            node_classes = set(node.classes)
            if any(c not in node_classes for c in self.classes):
                return False
        if any(not a.matches(node) for a in self.attributes):
            return False
        if self.nth_of_type is not None and node.nth_of_type() != self.nth_of_type:
            return False
        return True


_IDENT_STOP = set(" >#.[:")


def _read_ident(text: str, i: int) -> Tuple[str, int]:
    start = i
    while i < len(text) and text[i] not in _IDENT_STOP:
        if text[i] == "\\" and i + 1 < len(text):
            i += 2
            continue
        i += 1
    return text[start:i].replace("\\", ""), i


def _read_quoted(text: str, i: int) -> Tuple[str, int]:
    quote = text[i]
    i += 1
    out = []
    while i < len(text):
        ch = text[i]
        if ch == "\\" and i + 1 < len(text):
            out.append(text[i + 1])
            i += 2
            continue
        if ch == quote:
            return "".join(out), i + 1
        out.append(ch)
        i += 1
    raise SelectorSyntaxError(f"Unterminated string in selector: {text!r}")


def _parse_attribute(text: str, i: int) -> Tuple[AttributeTest, int]:
    # text[i] == "["
    i += 1
    start = i
    while i < len(text) and text[i] not in "=*^]":
        i += 1
    name = text[start:i].strip()
    if not name:
        raise SelectorSyntaxError(f"Empty attribute name in {text!r}")
    if i < len(text) and text[i] == "]":
        return AttributeTest(name=name), i + 1
    op = ""
    while i < len(text) and text[i] in "*^=":
        op += text[i]
        i += 1
    if op not in ("=", "*=", "^="):
        raise SelectorSyntaxError(f"Unsupported attribute operator {op!r}")
    if i < len(text) and text[i] in "\"'":
        value, i = _read_quoted(text, i)
    else:
        start = i
        while i < len(text) and text[i] != "]":
            i += 1
        value = text[start:i].strip()
    if i >= len(text) or text[i] != "]":
        raise SelectorSyntaxError(f"Unterminated attribute test in {text!r}")
    return AttributeTest(name=name, op=op, value=value), i + 1


def parse_selector(text: str) -> List[Tuple[str, Compound]]:
    """Parse into [(combinator, compound), ...]; the first combinator is ''."""
    parts: List[Tuple[str, Compound]] = []
    i = 0
    combinator = ""
    text = text.strip()
    if not text:
        raise SelectorSyntaxError("Empty selector")
    while i < len(text):
        compound = Compound()
        consumed = False
        while i < len(text) and text[i] not in " >":
            ch = text[i]
            if ch == "#":
                compound.element_id, i = _read_ident(text, i + 1)
            elif ch == ".":
                cls, i = _read_ident(text, i + 1)
                compound.classes.append(cls)
            elif ch == "[":
                attr, i = _parse_attribute(text, i)
                compound.attributes.append(attr)
            elif ch == ":":
                if not text.startswith(":nth-of-type(", i):
                    raise SelectorSyntaxError(f"Unsupported pseudo-class in {text!r}")
                end = text.find(")", i)
                if end == -1:
                    raise SelectorSyntaxError(f"Unterminated pseudo-class in {text!r}")
                try:
                    compound.nth_of_type = int(text[i + len(":nth-of-type("):end])
                except ValueError as e:
                    raise SelectorSyntaxError(f"Bad :nth-of-type index in {text!r}") from e
                i = end + 1
            else:
                compound.tag, i = _read_ident(text, i)
                compound.tag = compound.tag.lower()
            consumed = True
        if not consumed:
            raise SelectorSyntaxError(f"Dangling combinator in {text!r}")
        parts.append((combinator, compound))
        # combinator
        saw_child = False
        while i < len(text) and text[i] in " >":
            if text[i] == ">":
                saw_child = True
            i += 1
        combinator = ">" if saw_child else " "
    return parts


def _matches_chain(node: DocumentNode, parts: List[Tuple[str, Compound]], idx: int) -> bool:
    combinator, compound = parts[idx]
    if not compound.matches(node):
        return False
    if idx == 0:
        return True
    # combinator links parts[idx-1] to parts[idx]
    if combinator == ">":
        return node.parent is not None and _matches_chain(node.parent, parts, idx - 1)
    for ancestor in node.ancestors():
        if _matches_chain(ancestor, parts, idx - 1):
            return True
    return False


def matches(node: DocumentNode, selector: str) -> bool:
    parts = parse_selector(selector)
    return _matches_chain(node, parts, len(parts) - 1)


def select_all(root: DocumentNode, selector: str) -> List[DocumentNode]:
    """All nodes under ``root`` (inclusive) matching ``selector``, document order."""
    parts = parse_selector(selector)
    last = len(parts) - 1
    return [n for n in root.iter() if _matches_chain(n, parts, last)]


def select_one(root: DocumentNode, selector: str) -> Optional[DocumentNode]:
    parts = parse_selector(selector)
    last = len(parts) - 1
    for node in root.iter():
        if _matches_chain(node, parts, last):
            return node
    return None
