"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_access_validator,
    get_client_token_store,
    get_document_store,
    get_page_record_service,
    get_page_sweeper,
)
from .config import SettingsDependency, get_app_settings

__all__ = [
    "SettingsDependency",
    "get_access_validator",
    "get_app_settings",
    "get_client_token_store",
    "get_document_store",
    "get_page_record_service",
    "get_page_sweeper",
]
