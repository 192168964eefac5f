try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from urllib.parse import urlsplit

import pytest

from app.services.edit_url import (
    EditUrl,
    build_absolute_edit_url,
    decode_edit_url,
    encode_edit_url,
    is_page_uuid,
)
from app.services.tokens import generate_page_uuid, generate_token

PAGE_UUID = "3f2b8c1e-9a4d-4e7b-8c21-0d5e6f7a8b9c"


def test_encode_without_token_is_bare_path() -> None:
    assert encode_edit_url(PAGE_UUID) == f"/edit/{PAGE_UUID}"


def test_encode_with_token_appends_query() -> None:
    assert encode_edit_url(PAGE_UUID, "AbC123") == f"/edit/{PAGE_UUID}?token=AbC123"


def test_decode_recovers_generated_uuid_and_token() -> None:
    page_uuid = generate_page_uuid()
    token = generate_token()

    parts = urlsplit(encode_edit_url(page_uuid, token))

    assert decode_edit_url(parts.path, parts.query) == EditUrl(page_uuid, token)


def test_decode_accepts_leading_question_mark() -> None:
    decoded = decode_edit_url(f"/edit/{PAGE_UUID}", "?token=xyz&other=1")

    assert decoded.page_uuid == PAGE_UUID
    assert decoded.token == "xyz"


def test_decode_without_token_returns_none_token() -> None:
    assert decode_edit_url(f"/edit/{PAGE_UUID}", "") == EditUrl(PAGE_UUID, None)


@pytest.mark.parametrize(
    "path",
    [
        "/edit/not-a-uuid",
        "/edit/",
        "/edit",
        f"/edit/{PAGE_UUID}/extra",
        f"/edit/{PAGE_UUID}/",
        f"/edit/{PAGE_UUID.upper()}",
        f"/view/{PAGE_UUID}",
        f"/edit/{PAGE_UUID}\n",
        f"/edit/{PAGE_UUID.replace('-', '')}",
        "",
        None,
    ],
)
def test_decode_rejects_malformed_paths_without_raising(path) -> None:
    decoded = decode_edit_url(path, "token=abc")

    assert decoded.page_uuid is None
    assert decoded.token == "abc"


def test_decode_tolerates_garbage_query() -> None:
    decoded = decode_edit_url(f"/edit/{PAGE_UUID}", None)

    assert decoded == EditUrl(PAGE_UUID, None)


def test_build_absolute_edit_url_joins_base() -> None:
    url = build_absolute_edit_url("https://oneday.example/", PAGE_UUID, "tok")

    assert url == f"https://oneday.example/edit/{PAGE_UUID}?token=tok"
    assert build_absolute_edit_url(None, PAGE_UUID) == f"/edit/{PAGE_UUID}"


def test_is_page_uuid_accepts_only_issued_shape() -> None:
    assert is_page_uuid(PAGE_UUID)
    assert is_page_uuid(generate_page_uuid())
    for candidate in (PAGE_UUID.upper(), PAGE_UUID.replace("-", ""), f"{PAGE_UUID}\n", "", None, 42):
        assert not is_page_uuid(candidate)
