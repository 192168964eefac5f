"""Run blocking document store calls off the event loop with a deadline."""

from __future__ import annotations

import asyncio
import functools
from typing import Callable, TypeVar

from app.clients.document_store import StorageUnavailableError

T = TypeVar("T")


class StoreCallConfig:
    def __init__(self, *, timeout_seconds: float = 10.0) -> None:
        self.timeout_seconds = timeout_seconds


async def run_store_call(
    func: Callable[..., T],
    *args,
    call_config: StoreCallConfig | None = None,
    **kwargs,
) -> T:
    """Execute ``func`` in a worker thread, mapping timeouts to storage outages.

    There is no retry here: a write that timed out may still have landed, so
    the caller decides whether to re-check before trying again.
    """
    config = call_config or StoreCallConfig()
    call = functools.partial(func, *args, **kwargs)
    try:
        return await asyncio.wait_for(asyncio.to_thread(call), config.timeout_seconds)
    except asyncio.TimeoutError as exc:
        name = getattr(func, "__name__", "store call")
        raise StorageUnavailableError(
            f"{name} did not complete within {config.timeout_seconds}s"
        ) from exc


__all__ = ["StoreCallConfig", "run_store_call"]
