"""Expose document store backends."""

from .document_store import (
    DocumentStore,
    DuplicateDocumentError,
    FieldFilter,
    StorageUnavailableError,
)
from .dynamodb import DynamoDBDocumentStore
from .memory_store import InMemoryDocumentStore
from .sqlite_store import SQLiteDocumentStore

__all__ = [
    "DocumentStore",
    "DuplicateDocumentError",
    "DynamoDBDocumentStore",
    "FieldFilter",
    "InMemoryDocumentStore",
    "SQLiteDocumentStore",
    "StorageUnavailableError",
]
