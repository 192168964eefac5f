"""Pytest configuration shared across the suite."""

import pytest

try:
    from . import _bootstrap  # noqa: F401
    from ._fakes import FakeClock
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401
    from _fakes import FakeClock  # type: ignore

from app.clients.memory_store import InMemoryDocumentStore
from app.core.config import AccessSettings
from app.services.page_records import PageRecordService


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def access_settings() -> AccessSettings:
    return AccessSettings(PAGE_LIFETIME_SECONDS=86400, ALLOW_UNPROTECTED_ACCESS=True)


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def records(store, access_settings, clock) -> PageRecordService:
    return PageRecordService(store, access_settings, clock=clock)
