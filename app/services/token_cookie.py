"""
Browser-side credential cache kept in the ``edit_page_access_token`` cookie.

The cookie only proves that this browser once held a token; every decision
that matters is confirmed against the page record.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import quote, unquote

from fastapi import Response

from app.core.config import AccessSettings, CookieSlotPolicy
from app.utils.clock import Clock, epoch_ms

logger = logging.getLogger(__name__)


@dataclass
class TokenEntry:
    uuid: str
    token: str
    created_at: int

    def to_json(self) -> Dict[str, Any]:
        return {"uuid": self.uuid, "token": self.token, "createdAt": self.created_at}

    @classmethod
    def from_json(cls, payload: Any) -> "TokenEntry":
        if not isinstance(payload, dict):
            raise ValueError("Token entry must be an object.")
        page_uuid = payload.get("uuid")
        token = payload.get("token")
        created_at = payload.get("createdAt")
        if not isinstance(page_uuid, str) or not isinstance(token, str):
            raise ValueError("Token entry is missing uuid or token.")
        if isinstance(created_at, bool) or not isinstance(created_at, (int, float)):
            raise ValueError("Token entry is missing createdAt.")
        if not math.isfinite(created_at):
            raise ValueError("Token entry createdAt is not a finite number.")
        return cls(uuid=page_uuid, token=token, created_at=int(created_at))


def serialize_entries(entries: List[TokenEntry], policy: CookieSlotPolicy) -> str:
    if policy is CookieSlotPolicy.SINGLE:
        payload: Any = entries[-1].to_json()
    else:
        payload = [entry.to_json() for entry in entries]
    return quote(json.dumps(payload, separators=(",", ":")), safe="")


def parse_entries(raw: str) -> List[TokenEntry]:
    """Parse either cookie form; raises ``ValueError`` on anything malformed."""
    try:
        payload = json.loads(unquote(raw))
    except (TypeError, RecursionError, json.JSONDecodeError) as exc:
        raise ValueError("Cookie value is not JSON.") from exc
    if isinstance(payload, list):
        return [TokenEntry.from_json(item) for item in payload]
    return [TokenEntry.from_json(payload)]


class ClientTokenStore:
    """Per-request view of the token cookie.

    Reads happen against the incoming cookies; mutations are buffered and
    written to the outgoing response by :meth:`apply`.
    """

    def __init__(
        self,
        cookies: Mapping[str, str],
        settings: AccessSettings,
        *,
        secure: bool = False,
        clock: Clock = epoch_ms,
    ) -> None:
        self._settings = settings
        self._secure = secure
        self._clock = clock
        self._dirty = False
        self._corrupt = False
        self._entries: List[TokenEntry] = []

        raw = cookies.get(settings.cookie_name)
        if raw:
            try:
                self._entries = parse_entries(raw)
            except ValueError:
                logger.warning("Discarding unreadable edit token cookie")
                self._corrupt = True

    @property
    def entries(self) -> List[TokenEntry]:
        return list(self._entries)

    def store(self, page_uuid: str, token: str) -> None:
        entry = TokenEntry(uuid=page_uuid, token=token, created_at=self._clock())
        if self._settings.cookie_slot_policy is CookieSlotPolicy.SINGLE:
            self._entries = [entry]
        else:
            kept = [item for item in self._entries if item.uuid != page_uuid]
            kept.append(entry)
            self._entries = kept[-self._settings.cookie_max_entries :]
        self._corrupt = False
        self._dirty = True

    def retrieve(self, page_uuid: Optional[str]) -> Optional[str]:
        if not page_uuid:
            return None
        for entry in reversed(self._entries):
            if entry.uuid == page_uuid:
                return entry.token
        return None

    def remove(self, page_uuid: Optional[str] = None) -> None:
        if page_uuid is None:
            self._entries = []
        else:
            self._entries = [item for item in self._entries if item.uuid != page_uuid]
        self._dirty = True

    def sweep_if_expired(self) -> int:
        """Drop entries older than the page lifetime; returns how many went."""
        if self._corrupt:
            self._corrupt = False
            self._dirty = True
            return 1
        now = self._clock()
        lifetime = self._settings.page_lifetime_ms
        fresh = [item for item in self._entries if now - item.created_at <= lifetime]
        dropped = len(self._entries) - len(fresh)
        if dropped:
            self._entries = fresh
            self._dirty = True
        return dropped

    def apply(self, response: Response) -> None:
        """Write pending changes to ``response`` as Set-Cookie headers."""
        if not self._dirty:
            return
        if not self._entries:
            response.delete_cookie(
                self._settings.cookie_name,
                path="/",
                secure=self._secure,
                samesite="strict",
            )
            return
        response.set_cookie(
            self._settings.cookie_name,
            serialize_entries(self._entries, self._settings.cookie_slot_policy),
            max_age=self._settings.page_lifetime_seconds,
            path="/",
            secure=self._secure,
            httponly=False,
            samesite="strict",
        )


__all__ = ["ClientTokenStore", "TokenEntry", "parse_entries", "serialize_entries"]
