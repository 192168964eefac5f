"""Process-local document store used for tests and throwaway runs."""

from __future__ import annotations

import copy
import threading
from typing import Any, Dict, Iterable, Mapping, Optional
from uuid import uuid4

from .document_store import (
    Document,
    DuplicateDocumentError,
    FieldFilter,
    expectations_hold,
    matches_all,
)


class InMemoryDocumentStore:
    """Dictionary-backed store; a single lock serializes every operation."""

    def __init__(self) -> None:
        self._collections: Dict[str, Dict[str, Document]] = {}
        self._lock = threading.Lock()

    def insert(
        self,
        collection: str,
        document: Mapping[str, Any],
        *,
        document_id: Optional[str] = None,
    ) -> str:
        doc_id = document_id or uuid4().hex
        with self._lock:
            bucket = self._collections.setdefault(collection, {})
            if doc_id in bucket:
                raise DuplicateDocumentError(f"{collection}/{doc_id} already exists")
            stored = copy.deepcopy(dict(document))
            stored["id"] = doc_id
            bucket[doc_id] = stored
        return doc_id

    def get(self, collection: str, document_id: str) -> Optional[Document]:
        with self._lock:
            document = self._collections.get(collection, {}).get(document_id)
            return copy.deepcopy(document) if document is not None else None

    def query(self, collection: str, filters: Iterable[FieldFilter]) -> list[Document]:
        filters = list(filters)
        with self._lock:
            documents = list(self._collections.get(collection, {}).values())
            return [copy.deepcopy(doc) for doc in documents if matches_all(doc, filters)]

    def update(
        self,
        collection: str,
        document_id: str,
        patch: Mapping[str, Any],
        *,
        expected: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        with self._lock:
            document = self._collections.get(collection, {}).get(document_id)
            if document is None or not expectations_hold(document, expected):
                return False
            document.update(copy.deepcopy(dict(patch)))
            document["id"] = document_id
            return True

    def delete(
        self,
        collection: str,
        document_id: str,
        *,
        conditions: Iterable[FieldFilter] = (),
    ) -> bool:
        conditions = list(conditions)
        with self._lock:
            bucket = self._collections.get(collection, {})
            document = bucket.get(document_id)
            if document is None or not matches_all(document, conditions):
                return False
            del bucket[document_id]
            return True


__all__ = ["InMemoryDocumentStore"]
