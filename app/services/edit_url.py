"""
Encode and decode edit page links of the form ``/edit/{uuid}?token={token}``.

Decoding never raises; anything that does not match the exact shape comes
back as ``None`` so the access check makes the decision.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qs, urlencode

EDIT_PATH_PREFIX = "/edit/"
_UUID = r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}"
PAGE_UUID_PATTERN = re.compile(_UUID)
_EDIT_PATH = re.compile(rf"^/edit/({_UUID})$")


def is_page_uuid(value: object) -> bool:
    """True for a lowercase, hyphenated UUID as issued for pages."""
    return isinstance(value, str) and PAGE_UUID_PATTERN.fullmatch(value) is not None


@dataclass(frozen=True)
class EditUrl:
    page_uuid: Optional[str]
    token: Optional[str]


def encode_edit_url(page_uuid: str, token: Optional[str] = None) -> str:
    path = f"{EDIT_PATH_PREFIX}{page_uuid}"
    if token:
        return f"{path}?{urlencode({'token': token})}"
    return path


def decode_edit_url(path: object, query_string: object = "") -> EditUrl:
    page_uuid: Optional[str] = None
    if isinstance(path, str):
        match = _EDIT_PATH.fullmatch(path)
        if match:
            page_uuid = match.group(1)

    token: Optional[str] = None
    if isinstance(query_string, str) and query_string:
        try:
            values = parse_qs(query_string.lstrip("?"), keep_blank_values=True)
        except ValueError:
            values = {}
        if values.get("token"):
            token = values["token"][0]

    return EditUrl(page_uuid=page_uuid, token=token)


def build_absolute_edit_url(
    base_url: Optional[str], page_uuid: str, token: Optional[str] = None
) -> str:
    """Prefix the encoded path with the public origin when one is configured."""
    relative = encode_edit_url(page_uuid, token)
    if not base_url:
        return relative
    return f"{str(base_url).rstrip('/')}{relative}"


__all__ = [
    "EDIT_PATH_PREFIX",
    "PAGE_UUID_PATTERN",
    "EditUrl",
    "build_absolute_edit_url",
    "decode_edit_url",
    "encode_edit_url",
    "is_page_uuid",
]
