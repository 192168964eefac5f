"""
Edit access decisions for birthday pages.

Two separate checks exist and are composed by the caller:

* :func:`local_precheck` compares a claimed token with the browser's cached
  token. It can only deny; a match still needs the authoritative check.
* :class:`AccessValidator` compares the claim with the page record. It is
  read-only and raises ``StorageUnavailableError`` when it cannot decide.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from app.clients.document_store import StorageUnavailableError
from app.core.config import AccessSettings
from app.models.page import BirthdayPage, PageFound, PageLookupFailed
from app.services.edit_url import is_page_uuid
from app.services.page_records import PageRecordService
from app.utils.clock import Clock, epoch_ms

logger = logging.getLogger(__name__)


class AccessStatus(str, Enum):
    CHECKING = "CHECKING"
    VALID = "VALID"
    EXPIRED = "EXPIRED"
    INVALID = "INVALID"


class LocalCheck(str, Enum):
    MATCH = "match"
    MISMATCH = "mismatch"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class AccessDecision:
    status: AccessStatus
    reason: str
    page: Optional[BirthdayPage] = None

    @property
    def granted(self) -> bool:
        return self.status is AccessStatus.VALID


def local_precheck(cached_token: Optional[str], claimed_token: Optional[str]) -> LocalCheck:
    """Compare a claim against the cookie cache without touching the backend."""
    if not cached_token:
        return LocalCheck.UNKNOWN
    if claimed_token == cached_token:
        return LocalCheck.MATCH
    return LocalCheck.MISMATCH


class AccessValidator:
    """Authoritative, side-effect free token check against page records."""

    def __init__(
        self,
        records: PageRecordService,
        access_settings: AccessSettings,
        *,
        clock: Clock = epoch_ms,
    ) -> None:
        self._records = records
        self._settings = access_settings
        self._clock = clock

    async def check(
        self, page_uuid: Optional[str], claimed_token: Optional[str]
    ) -> AccessDecision:
        if not is_page_uuid(page_uuid):
            return AccessDecision(AccessStatus.INVALID, "malformed_uuid")

        result = await self._records.lookup(page_uuid)
        if isinstance(result, PageLookupFailed):
            raise StorageUnavailableError(
                f"Could not verify access to page {page_uuid}"
            ) from result.cause
        if not isinstance(result, PageFound):
            return AccessDecision(AccessStatus.INVALID, "not_found")

        page = result.page
        if page.is_expired(self._clock()):
            return AccessDecision(AccessStatus.EXPIRED, "expired")

        if not page.is_protected:
            if not claimed_token and self._settings.allow_unprotected_access:
                return AccessDecision(AccessStatus.VALID, "unprotected", page)
            return AccessDecision(AccessStatus.INVALID, "unprotected_page_denied")

        if claimed_token is not None and claimed_token == page.creator_token:
            return AccessDecision(AccessStatus.VALID, "token_match", page)
        reason = "token_missing" if not claimed_token else "token_mismatch"
        return AccessDecision(AccessStatus.INVALID, reason)

    async def is_authorized(
        self, page_uuid: Optional[str], claimed_token: Optional[str]
    ) -> bool:
        decision = await self.check(page_uuid, claimed_token)
        return decision.granted


__all__ = [
    "AccessDecision",
    "AccessStatus",
    "AccessValidator",
    "LocalCheck",
    "local_precheck",
]
