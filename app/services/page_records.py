"""
Lifecycle operations for server-side page records.

The record is the source of truth for a page's creator token and expiry.
All operations go through an injected document store and run with a bounded
timeout so a slow backend turns into ``StorageUnavailableError`` rather than
a hung request.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError

from app.clients.document_store import (
    DocumentStore,
    DuplicateDocumentError,
    StorageUnavailableError,
)
from app.core.config import AccessSettings
from app.models.page import (
    BirthdayPage,
    PageFound,
    PageLookup,
    PageLookupFailed,
    PageNotFound,
)
from app.utils.clock import Clock, epoch_ms
from app.utils.store_calls import StoreCallConfig, run_store_call

logger = logging.getLogger(__name__)

# Fields a content edit may touch; token and expiry only change via rotation.
EDITABLE_FIELDS = frozenset(
    {"title", "description", "theme", "background_image", "current_upload_size"}
)
_RESERVED_FIELDS = frozenset(
    {"id", "uuid", "creator_token", "created_at", "expires_at", "current_upload_size"}
)


class PageAlreadyExistsError(Exception):
    """Raised when a page uuid is already taken by a different creator token."""


class PageRecordService:
    """Create, read, rotate and delete page records."""

    def __init__(
        self,
        store: DocumentStore,
        access_settings: AccessSettings,
        *,
        collection: str = "birthdayPages",
        timeout_seconds: float = 10.0,
        clock: Clock = epoch_ms,
    ) -> None:
        self._store = store
        self._settings = access_settings
        self._collection = collection
        self._call_config = StoreCallConfig(timeout_seconds=timeout_seconds)
        self._clock = clock

    @property
    def collection(self) -> str:
        return self._collection

    @property
    def lifetime_ms(self) -> int:
        return self._settings.page_lifetime_ms

    async def _call(self, func, *args, **kwargs):
        return await run_store_call(func, *args, call_config=self._call_config, **kwargs)

    async def create(
        self,
        page_uuid: str,
        token: Optional[str],
        metadata: Mapping[str, Any],
    ) -> str:
        """Insert the full record in one write, keyed by ``page_uuid``.

        Retrying with the same uuid and token is safe: if the earlier attempt
        landed, its id is returned instead of a second record being written.
        """
        now = self._clock()
        document: Dict[str, Any] = {
            key: value for key, value in metadata.items() if key not in _RESERVED_FIELDS
        }
        document.update(
            {
                "uuid": page_uuid,
                "creator_token": token,
                "created_at": now,
                "expires_at": now + self.lifetime_ms,
                "current_upload_size": 0,
            }
        )

        try:
            record_id = await self._call(
                self._store.insert, self._collection, document, document_id=page_uuid
            )
        except DuplicateDocumentError:
            existing = await self._call(self._store.get, self._collection, page_uuid)
            if existing is not None and existing.get("creator_token") == token:
                logger.info("Page %s already created; treating retry as success", page_uuid)
                return existing.get("id", page_uuid)
            raise PageAlreadyExistsError(f"Page {page_uuid} already exists.") from None
        except StorageUnavailableError:
            logger.warning("Could not create page %s", page_uuid, exc_info=True)
            raise

        logger.info("Created page %s", page_uuid)
        return record_id

    async def lookup(self, page_uuid: str) -> PageLookup:
        """Fetch a page, keeping "missing" and "could not check" apart."""
        try:
            document = await self._call(self._store.get, self._collection, page_uuid)
        except StorageUnavailableError as exc:
            logger.warning("Lookup of page %s failed: %s", page_uuid, exc)
            return PageLookupFailed(cause=exc)
        if document is None:
            return PageNotFound()
        try:
            return PageFound(page=BirthdayPage.model_validate(document))
        except ValidationError:
            logger.error("Page %s has an unreadable record", page_uuid)
            return PageNotFound()

    async def get(self, page_uuid: str) -> Optional[BirthdayPage]:
        result = await self.lookup(page_uuid)
        if isinstance(result, PageLookupFailed):
            raise StorageUnavailableError(str(result.cause)) from result.cause
        if isinstance(result, PageFound):
            return result.page
        return None

    async def rotate_token(self, page_uuid: str, old_token: str, new_token: str) -> bool:
        """Swap the creator token and restart the lifetime.

        The write is conditional on the stored token still equalling
        ``old_token``; of two concurrent rotations from the same token only
        one can succeed.
        """
        if not old_token or not new_token:
            return False
        patch = {
            "creator_token": new_token,
            "expires_at": self._clock() + self.lifetime_ms,
        }
        rotated = await self._call(
            self._store.update,
            self._collection,
            page_uuid,
            patch,
            expected={"creator_token": old_token},
        )
        if rotated:
            logger.info("Rotated creator token for page %s", page_uuid)
        else:
            logger.info("Token rotation rejected for page %s", page_uuid)
        return rotated

    async def update_metadata(self, page_uuid: str, updates: Mapping[str, Any]) -> bool:
        patch = {key: value for key, value in updates.items() if key in EDITABLE_FIELDS}
        if not patch:
            return await self.get(page_uuid) is not None
        return await self._call(self._store.update, self._collection, page_uuid, patch)

    async def delete(self, page_uuid: str) -> None:
        await self._call(self._store.delete, self._collection, page_uuid)
        logger.info("Deleted page %s", page_uuid)


__all__ = ["EDITABLE_FIELDS", "PageAlreadyExistsError", "PageRecordService"]
