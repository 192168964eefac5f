"""Service layer exports."""

from .access import (
    AccessDecision,
    AccessStatus,
    AccessValidator,
    LocalCheck,
    local_precheck,
)
from .edit_url import (
    EditUrl,
    build_absolute_edit_url,
    decode_edit_url,
    encode_edit_url,
    is_page_uuid,
)
from .page_records import PageAlreadyExistsError, PageRecordService
from .sweeper import ExpiredPageSweeper
from .token_cookie import ClientTokenStore
from .tokens import generate_page_uuid, generate_token

__all__ = [
    "AccessDecision",
    "AccessStatus",
    "AccessValidator",
    "ClientTokenStore",
    "EditUrl",
    "ExpiredPageSweeper",
    "LocalCheck",
    "PageAlreadyExistsError",
    "PageRecordService",
    "build_absolute_edit_url",
    "decode_edit_url",
    "encode_edit_url",
    "is_page_uuid",
    "generate_page_uuid",
    "generate_token",
    "local_precheck",
]
