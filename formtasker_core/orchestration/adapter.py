"""
Document adapter capability.

The orchestrator never touches a browser directly; everything it needs from
the live document goes through this protocol. ``PlaywrightDocumentAdapter``
implements it for real pages and ``tests/mocks`` for in-memory documents.
"""

from typing import Any, List, Optional, Protocol, runtime_checkable

from ..mapping import DocumentNode, Field, Locator


@runtime_checkable
class DocumentAdapter(Protocol):
    async def snapshot(self) -> DocumentNode:
        """Serialize the current document into a node tree."""
        ...

    async def read_attribute(self, locator: str, name: str) -> Optional[str]:
        ...

    async def read_text(self, locator: str) -> str:
        ...

    async def write_value(self, field: Field, value: Any) -> None:
        """Write ``value`` into ``field``; raises AdapterError on failure."""
        ...

    async def click(self, locator: str) -> None:
        ...

    async def submit(self) -> None:
        ...

    async def reset(self) -> None:
        """Bring the document back to a fresh, fillable state."""
        ...

    async def visible_text(self) -> str:
        ...

    async def locate(self, chain: List[Locator]) -> Optional[str]:
        """First expression of ``chain`` that resolves in the live document."""
        ...
