"""Millisecond wall clock shared by records, cookies and the sweeper."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], int]


def epoch_ms() -> int:
    """Current UTC time in epoch milliseconds."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def from_epoch_ms(value: int) -> datetime:
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


__all__ = ["Clock", "epoch_ms", "from_epoch_ms"]
