"""
Minimal document store contract shared by every storage backend.

Pages only need insert, point reads, filtered queries, conditional updates
and deletes, so any document database (or a single relational table) can
back the service.
"""

from __future__ import annotations

import operator
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Protocol

Document = Dict[str, Any]

_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


class StorageUnavailableError(Exception):
    """Raised when the backend cannot be reached or does not answer in time.

    This is never a statement about the data: callers must surface it as a
    retryable failure rather than as "not found" or "denied".
    """


class DuplicateDocumentError(Exception):
    """Raised when inserting a document whose id already exists."""


@dataclass(frozen=True)
class FieldFilter:
    """A single ``field <op> value`` predicate, Firestore ``where`` style."""

    field: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in _OPERATORS:
            raise ValueError(f"Unsupported filter operator: {self.op!r}")

    def matches(self, document: Mapping[str, Any]) -> bool:
        if self.field not in document:
            return False
        candidate = document[self.field]
        try:
            return _OPERATORS[self.op](candidate, self.value)
        except TypeError:
            return False


def matches_all(document: Mapping[str, Any], filters: Iterable[FieldFilter]) -> bool:
    """Return True when every filter accepts the document."""
    return all(flt.matches(document) for flt in filters)


def expectations_hold(
    document: Mapping[str, Any], expected: Optional[Mapping[str, Any]]
) -> bool:
    """Compare-and-swap guard: every expected field must equal the stored value."""
    if not expected:
        return True
    return all(document.get(key) == value for key, value in expected.items())


class DocumentStore(Protocol):
    """Synchronous CRUD + query interface implemented by each backend."""

    def insert(
        self,
        collection: str,
        document: Mapping[str, Any],
        *,
        document_id: Optional[str] = None,
    ) -> str:
        ...

    def get(self, collection: str, document_id: str) -> Optional[Document]:
        ...

    def query(self, collection: str, filters: Iterable[FieldFilter]) -> list[Document]:
        ...

    def update(
        self,
        collection: str,
        document_id: str,
        patch: Mapping[str, Any],
        *,
        expected: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        ...

    def delete(
        self,
        collection: str,
        document_id: str,
        *,
        conditions: Iterable[FieldFilter] = (),
    ) -> bool:
        """Remove the document if every condition holds; True when it was removed."""
        ...


__all__ = [
    "Document",
    "DocumentStore",
    "DuplicateDocumentError",
    "FieldFilter",
    "StorageUnavailableError",
    "expectations_hold",
    "matches_all",
]
