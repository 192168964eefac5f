"""Removal of page records whose lifetime has run out."""

from __future__ import annotations

import logging
from typing import Optional

from app.clients.document_store import DocumentStore, FieldFilter
from app.utils.clock import Clock, epoch_ms
from app.utils.store_calls import StoreCallConfig, run_store_call

logger = logging.getLogger(__name__)


class ExpiredPageSweeper:
    """Delete every page with ``expires_at <= now``.

    Each delete is conditional on the page still being expired, so a page
    rotated after the query survives. Pages another sweep removed first are
    not counted.
    """

    def __init__(
        self,
        store: DocumentStore,
        *,
        collection: str = "birthdayPages",
        timeout_seconds: float = 10.0,
        clock: Clock = epoch_ms,
    ) -> None:
        self._store = store
        self._collection = collection
        self._call_config = StoreCallConfig(timeout_seconds=timeout_seconds)
        self._clock = clock

    async def find_expired(self, now: Optional[int] = None) -> list[str]:
        expired = FieldFilter("expires_at", "<=", self._clock() if now is None else now)
        documents = await run_store_call(
            self._store.query,
            self._collection,
            [expired],
            call_config=self._call_config,
        )
        return [doc.get("id") or doc["uuid"] for doc in documents]

    async def sweep(self) -> int:
        now = self._clock()
        expired = FieldFilter("expires_at", "<=", now)
        deleted = 0
        for page_id in await self.find_expired(now):
            # Skips pages rotated since the query.
            removed = await run_store_call(
                self._store.delete,
                self._collection,
                page_id,
                conditions=[expired],
                call_config=self._call_config,
            )
            if removed:
                deleted += 1
        if deleted:
            logger.info("Swept %d expired pages", deleted)
        return deleted


__all__ = ["ExpiredPageSweeper"]
