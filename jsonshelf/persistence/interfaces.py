from __future__ import annotations

from typing import Any, Iterable, Protocol


class DocumentStore(Protocol):
    """
    Named JSON documents, each a flat mapping of string keys to JSON values.
    """

    def normalize(self, name: str) -> str:
        """Canonical form of a document name (no ".json" suffix)."""
        ...

    def exists(self, name: str) -> bool:
        ...

    def load(self, name: str) -> dict[str, Any]:
        """Return a private copy of the document; raises if it is missing or corrupt."""
        ...

    def persist(self, name: str, doc: dict[str, Any]) -> None:
        """Store the full document according to the write policy."""
        ...

    def create(self, name: str, doc: dict[str, Any]) -> dict[str, Any]:
        """Persist a brand new document; raises if the name is taken."""
        ...

    def destroy(self, name: str) -> None:
        ...

    def clone(self, source: str, dest: str) -> dict[str, Any]:
        ...

    def write_all(self, names: str | Iterable[str] | None = None) -> bool:
        ...
