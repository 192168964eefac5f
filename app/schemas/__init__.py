"""Public schema exports."""

from .page import (
    EditAccessResponse,
    PageCreateRequest,
    PageCreateResponse,
    PageUpdateRequest,
    PageView,
    SweepResponse,
    TokenRotationRequest,
    TokenRotationResponse,
)

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
