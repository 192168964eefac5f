"""
FastAPI routes for birthday page creation and creator edit access.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Optional

from fastapi import (
    APIRouter,
    BackgroundTasks,
    Depends,
    Header,
    HTTPException,
    Request,
    Response,
)

from app.clients.document_store import StorageUnavailableError
from app.core.config import AppSettings
from app.dependencies import (
    get_access_validator,
    get_app_settings,
    get_client_token_store,
    get_page_record_service,
    get_page_sweeper,
)
from app.schemas import (
    EditAccessResponse,
    PageCreateRequest,
    PageCreateResponse,
    PageUpdateRequest,
    PageView,
    SweepResponse,
    TokenRotationRequest,
    TokenRotationResponse,
)
from app.services import (
    AccessDecision,
    AccessStatus,
    AccessValidator,
    ClientTokenStore,
    ExpiredPageSweeper,
    LocalCheck,
    PageAlreadyExistsError,
    PageRecordService,
    build_absolute_edit_url,
    decode_edit_url,
    generate_page_uuid,
    generate_token,
    local_precheck,
)

router = APIRouter()
edit_router = APIRouter()
logger = logging.getLogger(__name__)

CookieStore = Annotated[ClientTokenStore, Depends(get_client_token_store)]
Records = Annotated[PageRecordService, Depends(get_page_record_service)]
Validator = Annotated[AccessValidator, Depends(get_access_validator)]
Sweeper = Annotated[ExpiredPageSweeper, Depends(get_page_sweeper)]
Settings = Annotated[AppSettings, Depends(get_app_settings)]


async def _sweep_in_background(sweeper: ExpiredPageSweeper) -> None:
    try:
        await sweeper.sweep()
    except StorageUnavailableError as exc:
        logger.warning("Opportunistic sweep skipped: %s", exc)


def _public_base(settings: AppSettings) -> Optional[str]:
    return str(settings.public_base_url) if settings.public_base_url else None


async def _require_edit_access(
    page_uuid: str,
    header_token: Optional[str],
    cookie_store: ClientTokenStore,
    validator: AccessValidator,
) -> AccessDecision:
    """Local pre-check, then the authoritative record check; raises on denial."""
    cached = cookie_store.retrieve(page_uuid)
    claimed = header_token or cached
    if local_precheck(cached, claimed) is LocalCheck.MISMATCH:
        logger.info("Edit request for page %s denied by local pre-check", page_uuid)
        raise HTTPException(
            status_code=HTTPStatus.FORBIDDEN,
            detail="Edit token does not match the token stored in this browser.",
        )

    decision = await validator.check(page_uuid, claimed)
    if decision.status is AccessStatus.EXPIRED:
        raise HTTPException(
            status_code=HTTPStatus.GONE,
            detail="This page has expired. Create a new page to continue.",
        )
    if not decision.granted:
        logger.info("Edit request for page %s denied (%s)", page_uuid, decision.reason)
        raise HTTPException(
            status_code=HTTPStatus.FORBIDDEN,
            detail="A valid edit token is required for this page.",
        )
    return decision


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.post(
    "/pages",
    status_code=HTTPStatus.CREATED,
    response_model=PageCreateResponse,
)
async def create_page(
    payload: PageCreateRequest,
    response: Response,
    records: Records,
    cookie_store: CookieStore,
    settings: Settings,
) -> PageCreateResponse:
    """Create a page record and hand its creator token to this browser."""
    page_uuid = generate_page_uuid()
    token = generate_token(settings.access.token_length)

    try:
        await records.create(page_uuid, token, payload.model_dump())
    except PageAlreadyExistsError as exc:
        raise HTTPException(status_code=HTTPStatus.CONFLICT, detail=str(exc)) from exc

    page = await records.get(page_uuid)
    if page is None:
        raise StorageUnavailableError(f"Page {page_uuid} was not readable after creation.")

    cookie_store.store(page_uuid, token)
    cookie_store.apply(response)
    return PageCreateResponse(
        uuid=page_uuid,
        token=token,
        edit_url=build_absolute_edit_url(_public_base(settings), page_uuid, token),
        expires_at=page.expires_at,
    )


@edit_router.get("/edit/{page_path:path}", response_model=EditAccessResponse)
async def get_edit_access(
    request: Request,
    response: Response,
    background_tasks: BackgroundTasks,
    cookie_store: CookieStore,
    validator: Validator,
    sweeper: Sweeper,
    settings: Settings,
) -> EditAccessResponse:
    """Resolve the access status for an ``/edit/{uuid}?token=...`` visit."""
    cookie_store.sweep_if_expired()
    if settings.access.sweep_on_request:
        background_tasks.add_task(_sweep_in_background, sweeper)

    edit_url = decode_edit_url(request.url.path, request.url.query)
    page_uuid = edit_url.page_uuid
    if page_uuid is None:
        cookie_store.apply(response)
        return EditAccessResponse(status=AccessStatus.INVALID)

    cached = cookie_store.retrieve(page_uuid)
    claimed = edit_url.token or cached
    if local_precheck(cached, claimed) is LocalCheck.MISMATCH:
        decision = AccessDecision(AccessStatus.INVALID, "local_mismatch")
    else:
        decision = await validator.check(page_uuid, claimed)
        if decision.granted and edit_url.token and edit_url.token != cached:
            cookie_store.store(page_uuid, edit_url.token)
        elif not decision.granted and cached is not None:
            cookie_store.remove(page_uuid)

    if not decision.granted:
        logger.info(
            "Edit access %s for page %s (%s)",
            decision.status.value,
            page_uuid,
            decision.reason,
        )

    cookie_store.apply(response)
    return EditAccessResponse(
        status=decision.status,
        uuid=page_uuid,
        page=PageView.from_page(decision.page) if decision.page else None,
    )


@router.patch("/pages/{page_uuid}", response_model=PageView)
async def update_page(
    page_uuid: str,
    payload: PageUpdateRequest,
    records: Records,
    validator: Validator,
    cookie_store: CookieStore,
    x_edit_token: Annotated[Optional[str], Header()] = None,
) -> PageView:
    """Apply content edits after a server-confirmed token check."""
    await _require_edit_access(page_uuid, x_edit_token, cookie_store, validator)

    updated = await records.update_metadata(page_uuid, payload.model_dump(exclude_unset=True))
    page = await records.get(page_uuid) if updated else None
    if page is None:
        raise HTTPException(status_code=HTTPStatus.NOT_FOUND, detail="Page not found.")
    return PageView.from_page(page)


@router.post("/pages/{page_uuid}/token", response_model=TokenRotationResponse)
async def rotate_page_token(
    page_uuid: str,
    payload: TokenRotationRequest,
    response: Response,
    records: Records,
    validator: Validator,
    cookie_store: CookieStore,
    settings: Settings,
) -> TokenRotationResponse:
    """Replace the creator token and restart the page lifetime."""
    old_token = payload.old_token or cookie_store.retrieve(page_uuid)
    decision = await validator.check(page_uuid, old_token)
    if decision.status is AccessStatus.EXPIRED:
        raise HTTPException(status_code=HTTPStatus.GONE, detail="This page has expired.")
    if not decision.granted or not old_token:
        raise HTTPException(
            status_code=HTTPStatus.FORBIDDEN,
            detail="The current edit token is required to rotate it.",
        )

    new_token = generate_token(settings.access.token_length)
    if not await records.rotate_token(page_uuid, old_token, new_token):
        raise HTTPException(
            status_code=HTTPStatus.CONFLICT,
            detail="The edit token changed while rotating. Reload and try again.",
        )

    page = await records.get(page_uuid)
    if page is None:
        raise HTTPException(status_code=HTTPStatus.CONFLICT, detail="Page was removed.")

    cookie_store.store(page_uuid, new_token)
    cookie_store.apply(response)
    return TokenRotationResponse(
        token=new_token,
        edit_url=build_absolute_edit_url(_public_base(settings), page_uuid, new_token),
        expires_at=page.expires_at,
    )


@router.delete("/pages/{page_uuid}", status_code=HTTPStatus.NO_CONTENT)
async def delete_page(
    page_uuid: str,
    records: Records,
    validator: Validator,
    cookie_store: CookieStore,
    x_edit_token: Annotated[Optional[str], Header()] = None,
) -> Response:
    """Delete a page on behalf of its creator."""
    await _require_edit_access(page_uuid, x_edit_token, cookie_store, validator)
    await records.delete(page_uuid)

    response = Response(status_code=HTTPStatus.NO_CONTENT)
    cookie_store.remove(page_uuid)
    cookie_store.apply(response)
    return response


@router.post("/maintenance/sweep", response_model=SweepResponse)
async def sweep_expired_pages(sweeper: Sweeper) -> SweepResponse:
    """Delete every page whose expiry has passed."""
    return SweepResponse(deleted=await sweeper.sweep())


__all__ = ["edit_router", "router"]
