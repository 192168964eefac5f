"""
Pydantic models for page creation, edit access and token rotation.
"""

from typing import Optional

from pydantic import BaseModel, Field

from app.models.page import BirthdayPage
from app.services.access import AccessStatus


class PageCreateRequest(BaseModel):
    """Metadata supplied when creating a birthday page."""

    title: str = Field(..., min_length=1, max_length=120)
    description: Optional[str] = Field(None, max_length=2000)
    theme: str = Field("default", description="Theme key chosen in the editor.")
    background_image: Optional[str] = Field(
        None, description="Storage path or URL of the background image."
    )
    upload_limit: int = Field(100, gt=0, le=1024, description="Upload quota in MB.")


class PageCreateResponse(BaseModel):
    """Credentials for the freshly created page."""

    uuid: str
    token: str
    edit_url: str = Field(..., description="Bookmarkable link carrying the token.")
    expires_at: int = Field(..., description="Expiry in epoch milliseconds.")


class PageView(BaseModel):
    """Page fields safe to return to an authorized editor (no token)."""

    uuid: str
    title: str
    description: Optional[str] = None
    theme: str
    background_image: Optional[str] = None
    created_at: int
    expires_at: int
    upload_limit: int
    current_upload_size: float

    @classmethod
    def from_page(cls, page: BirthdayPage) -> "PageView":
        return cls(**page.model_dump(exclude={"id", "creator_token"}))


class EditAccessResponse(BaseModel):
    """Access status for an edit page visit."""

    status: AccessStatus
    uuid: Optional[str] = None
    page: Optional[PageView] = None


class PageUpdateRequest(BaseModel):
    """Content edits; token and expiry are never editable here."""

    title: Optional[str] = Field(None, min_length=1, max_length=120)
    description: Optional[str] = Field(None, max_length=2000)
    theme: Optional[str] = None
    background_image: Optional[str] = None
    current_upload_size: Optional[float] = Field(None, ge=0)


class TokenRotationRequest(BaseModel):
    """Proof of possession for a rotation; falls back to the cookie when omitted."""

    old_token: Optional[str] = None


class TokenRotationResponse(BaseModel):
    token: str
    edit_url: str
    expires_at: int


class SweepResponse(BaseModel):
    deleted: int


__all__ = [
    "EditAccessResponse",
    "PageCreateRequest",
    "PageCreateResponse",
    "PageUpdateRequest",
    "PageView",
    "SweepResponse",
    "TokenRotationRequest",
    "TokenRotationResponse",
]
