from __future__ import annotations

try:
    from . import _bootstrap  # noqa: F401
    from ._fakes import DAY_MS, T0, OutageStore, SlowStore
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401
    from _fakes import DAY_MS, T0, OutageStore, SlowStore  # type: ignore

import pytest

from app.clients.document_store import StorageUnavailableError
from app.core.config import AccessSettings
from app.services.access import (
    AccessStatus,
    AccessValidator,
    LocalCheck,
    local_precheck,
)
from app.services.page_records import PageRecordService

PAGE_UUID = "0b9e8d7c-6a5f-4e3d-9c2b-1a0f9e8d7c6b"
TOKEN = "ABCdef0123456789ABCdef0123456789"


@pytest.fixture
def validator(records, access_settings, clock) -> AccessValidator:
    return AccessValidator(records, access_settings, clock=clock)


def test_local_precheck_only_decides_on_mismatch() -> None:
    assert local_precheck(TOKEN, "wrong") is LocalCheck.MISMATCH
    assert local_precheck(TOKEN, None) is LocalCheck.MISMATCH
    assert local_precheck(TOKEN, TOKEN) is LocalCheck.MATCH
    assert local_precheck(None, TOKEN) is LocalCheck.UNKNOWN
    assert local_precheck("", TOKEN) is LocalCheck.UNKNOWN


@pytest.mark.asyncio
async def test_access_granted_until_lifetime_ends(records, validator, clock) -> None:
    await records.create(PAGE_UUID, TOKEN, {"title": "t"})

    clock.now = T0 + DAY_MS - 1
    assert await validator.is_authorized(PAGE_UUID, TOKEN) is True

    clock.now = T0 + DAY_MS + 1
    decision = await validator.check(PAGE_UUID, TOKEN)
    assert decision.status is AccessStatus.EXPIRED
    assert await validator.is_authorized(PAGE_UUID, TOKEN) is False


@pytest.mark.asyncio
async def test_wrong_token_is_invalid(records, validator) -> None:
    await records.create(PAGE_UUID, TOKEN, {"title": "t"})

    decision = await validator.check(PAGE_UUID, "wrong-secret")

    assert decision.status is AccessStatus.INVALID
    assert decision.reason == "token_mismatch"
    assert await validator.is_authorized(PAGE_UUID, "wrong-secret") is False


@pytest.mark.asyncio
async def test_comparison_is_exact(records, validator) -> None:
    await records.create(PAGE_UUID, TOKEN, {"title": "t"})

    assert await validator.is_authorized(PAGE_UUID, TOKEN.lower()) is False
    assert await validator.is_authorized(PAGE_UUID, TOKEN[:-1]) is False
    assert await validator.is_authorized(PAGE_UUID, TOKEN + "x") is False
    assert await validator.is_authorized(PAGE_UUID, TOKEN) is True


@pytest.mark.asyncio
async def test_valid_decision_carries_page(records, validator) -> None:
    await records.create(PAGE_UUID, TOKEN, {"title": "Party"})

    decision = await validator.check(PAGE_UUID, TOKEN)

    assert decision.status is AccessStatus.VALID
    assert decision.page is not None
    assert decision.page.title == "Party"


@pytest.mark.asyncio
@pytest.mark.parametrize("page_uuid", [None, "", "not-a-uuid", PAGE_UUID.upper()])
async def test_malformed_uuid_is_invalid_without_lookup(validator, page_uuid) -> None:
    decision = await validator.check(page_uuid, TOKEN)

    assert decision.status is AccessStatus.INVALID
    assert decision.reason == "malformed_uuid"


@pytest.mark.asyncio
async def test_unknown_page_is_invalid(validator) -> None:
    decision = await validator.check(PAGE_UUID, TOKEN)

    assert decision.status is AccessStatus.INVALID
    assert decision.reason == "not_found"


@pytest.mark.asyncio
async def test_missing_token_never_opens_a_protected_page(records, validator) -> None:
    await records.create(PAGE_UUID, TOKEN, {"title": "t"})

    assert await validator.is_authorized(PAGE_UUID, None) is False
    assert await validator.is_authorized(PAGE_UUID, "") is False


@pytest.mark.asyncio
async def test_unprotected_page_open_without_token_when_allowed(records, validator) -> None:
    await records.create(PAGE_UUID, None, {"title": "public"})

    decision = await validator.check(PAGE_UUID, None)

    assert decision.status is AccessStatus.VALID
    assert decision.reason == "unprotected"


@pytest.mark.asyncio
async def test_unprotected_page_closed_when_policy_disabled(store, clock) -> None:
    settings = AccessSettings(ALLOW_UNPROTECTED_ACCESS=False)
    records = PageRecordService(store, settings, clock=clock)
    validator = AccessValidator(records, settings, clock=clock)
    await records.create(PAGE_UUID, None, {"title": "public"})

    assert await validator.is_authorized(PAGE_UUID, None) is False


@pytest.mark.asyncio
async def test_check_does_not_mutate_record(records, validator, store) -> None:
    await records.create(PAGE_UUID, TOKEN, {"title": "t"})
    before = store.get("birthdayPages", PAGE_UUID)

    await validator.check(PAGE_UUID, TOKEN)
    await validator.check(PAGE_UUID, "wrong")

    assert store.get("birthdayPages", PAGE_UUID) == before


@pytest.mark.asyncio
async def test_rotation_switches_which_token_is_authorized(records, validator, clock) -> None:
    await records.create(PAGE_UUID, TOKEN, {"title": "t"})
    clock.advance(DAY_MS - 10)
    new_token = "Z" * 32

    assert await records.rotate_token(PAGE_UUID, TOKEN, new_token) is True
    clock.advance(20)

    assert await validator.is_authorized(PAGE_UUID, TOKEN) is False
    assert await validator.is_authorized(PAGE_UUID, new_token) is True
    page = await records.get(PAGE_UUID)
    assert page.expires_at == T0 + DAY_MS - 10 + DAY_MS


@pytest.mark.asyncio
async def test_storage_outage_is_not_a_denial(access_settings, clock) -> None:
    outage = OutageStore()
    records = PageRecordService(outage, access_settings, clock=clock)
    validator = AccessValidator(records, access_settings, clock=clock)
    await records.create(PAGE_UUID, TOKEN, {"title": "t"})
    outage.down = True

    with pytest.raises(StorageUnavailableError):
        await validator.check(PAGE_UUID, TOKEN)


@pytest.mark.asyncio
async def test_slow_backend_times_out_as_unavailable(access_settings, clock) -> None:
    slow = SlowStore(delay=0.5)
    records = PageRecordService(slow, access_settings, timeout_seconds=0.05, clock=clock)
    validator = AccessValidator(records, access_settings, clock=clock)

    with pytest.raises(StorageUnavailableError):
        await validator.is_authorized(PAGE_UUID, TOKEN)
