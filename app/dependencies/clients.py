"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from functools import lru_cache

from fastapi import Depends, Request

from app.clients import (
    DocumentStore,
    DynamoDBDocumentStore,
    InMemoryDocumentStore,
    SQLiteDocumentStore,
)
from app.core.config import AppSettings, StorageBackend, StorageSettings, get_settings
from app.services import (
    AccessValidator,
    ClientTokenStore,
    ExpiredPageSweeper,
    PageRecordService,
)

from .config import get_app_settings


def build_document_store(storage: StorageSettings) -> DocumentStore:
    """Instantiate the backend selected by ``STORAGE_BACKEND``."""
    if storage.backend is StorageBackend.MEMORY:
        return InMemoryDocumentStore()
    if storage.backend is StorageBackend.DYNAMODB:
        return DynamoDBDocumentStore(storage)
    return SQLiteDocumentStore(storage.sqlite_db_path)


@lru_cache()
def get_document_store() -> DocumentStore:
    """Provide the configured document store backend, shared per process."""
    return build_document_store(get_settings().storage)


def get_page_record_service(
    store: DocumentStore = Depends(get_document_store),
    settings: AppSettings = Depends(get_app_settings),
) -> PageRecordService:
    """Build the page record service around the shared store."""
    return PageRecordService(
        store,
        settings.access,
        collection=settings.storage.pages_collection,
        timeout_seconds=settings.storage.timeout_seconds,
    )


def get_access_validator(
    records: PageRecordService = Depends(get_page_record_service),
    settings: AppSettings = Depends(get_app_settings),
) -> AccessValidator:
    """Build the authoritative access validator."""
    return AccessValidator(records, settings.access)


def get_page_sweeper(
    store: DocumentStore = Depends(get_document_store),
    settings: AppSettings = Depends(get_app_settings),
) -> ExpiredPageSweeper:
    """Build the expired page sweeper."""
    return ExpiredPageSweeper(
        store,
        collection=settings.storage.pages_collection,
        timeout_seconds=settings.storage.timeout_seconds,
    )


def get_client_token_store(
    request: Request,
    settings: AppSettings = Depends(get_app_settings),
) -> ClientTokenStore:
    """Per-request view of the edit token cookie."""
    return ClientTokenStore(
        request.cookies,
        settings.access,
        secure=settings.is_production,
    )


__all__ = [
    "build_document_store",
    "get_access_validator",
    "get_client_token_store",
    "get_document_store",
    "get_page_record_service",
    "get_page_sweeper",
]
