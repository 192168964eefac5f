"""
FastAPI application entrypoint for the birthday page access service.
"""

from __future__ import annotations

import logging
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api.routes import edit_router, router as api_router
from app.clients.document_store import StorageUnavailableError
from app.core.config import get_settings
from app.core.logging import configure_logging

logger = logging.getLogger(__name__)


async def _storage_unavailable_handler(
    request: Request, exc: StorageUnavailableError
) -> JSONResponse:
    """Report backend outages as retryable, never as a denial."""
    logger.warning("Storage unavailable during %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=HTTPStatus.SERVICE_UNAVAILABLE,
        content={
            "detail": "Page storage is temporarily unavailable. Please try again.",
            "retryable": True,
        },
    )


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="One Day Birthday Page Access",
        version="0.1.0",
        description="Anonymous creator access for ephemeral birthday pages.",
    )
    app.add_exception_handler(StorageUnavailableError, _storage_unavailable_handler)
    app.include_router(api_router, prefix="/api")
    app.include_router(edit_router)
    return app


app = create_app()

__all__ = ["app", "create_app"]
