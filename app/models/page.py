"""
Domain models for birthday page records.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from pydantic import BaseModel, Field


class BirthdayPage(BaseModel):
    """Represents a page record stored in the document store."""

    id: str = Field(..., description="Document id; equal to the page uuid.")
    uuid: str = Field(..., description="Public page identifier.")
    title: str
    description: Optional[str] = None
    theme: str = "default"
    background_image: Optional[str] = None
    creator_token: Optional[str] = Field(
        None, description="Current creator secret; None for an unprotected page."
    )
    created_at: int = Field(..., description="Creation time in epoch milliseconds.")
    expires_at: int = Field(..., description="Expiry time in epoch milliseconds.")
    upload_limit: int = Field(100, description="Upload quota in MB.")
    current_upload_size: float = 0

    @property
    def is_protected(self) -> bool:
        return bool(self.creator_token)

    def is_expired(self, now_ms: int) -> bool:
        return now_ms > self.expires_at


@dataclass(frozen=True)
class PageFound:
    page: BirthdayPage


@dataclass(frozen=True)
class PageNotFound:
    pass


@dataclass(frozen=True)
class PageLookupFailed:
    cause: Exception


PageLookup = Union[PageFound, PageNotFound, PageLookupFailed]


__all__ = [
    "BirthdayPage",
    "PageFound",
    "PageLookup",
    "PageLookupFailed",
    "PageNotFound",
]
