"""Delete expired birthday pages from the configured document store.

Meant for cron or a scheduled job, alongside the opportunistic sweeps the
API runs after edit page visits.

Example usages::

    # Remove every page whose expiry has passed.
    python -m scripts.sweep_expired_pages

    # Report how many pages would be removed without deleting anything.
    python -m scripts.sweep_expired_pages --dry-run --env-file /opt/oneday/.env
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from app.clients.document_store import StorageUnavailableError
from app.core.config import AppSettings, _load_env_file
from app.core.logging import configure_logging
from app.dependencies.clients import build_document_store
from app.services.sweeper import ExpiredPageSweeper

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_STORAGE_UNAVAILABLE = 4
EXIT_RUNTIME_ERROR = 5

logger = logging.getLogger("scripts.sweep_expired_pages")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Delete expired birthday pages.")
    parser.add_argument(
        "--env-file",
        default=None,
        type=Path,
        help="Optional environment file to load before reading settings.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only count expired pages; do not delete them.",
    )
    return parser


def _build_sweeper(settings: AppSettings) -> ExpiredPageSweeper:
    return ExpiredPageSweeper(
        build_document_store(settings.storage),
        collection=settings.storage.pages_collection,
        timeout_seconds=settings.storage.timeout_seconds,
    )


async def _run(sweeper: ExpiredPageSweeper, dry_run: bool) -> int:
    if dry_run:
        return len(await sweeper.find_expired())
    return await sweeper.sweep()


def main(argv: list[str] | None = None, *, sweeper: ExpiredPageSweeper | None = None) -> int:
    args = _build_parser().parse_args(argv)

    try:
        if args.env_file is not None:
            if not args.env_file.exists():
                print(f"Environment file {args.env_file} does not exist.", file=sys.stderr)
                return EXIT_RUNTIME_ERROR
            _load_env_file(str(args.env_file))
        settings = AppSettings()  # type: ignore[call-arg]
    except ValidationError as exc:
        print(
            "Settings validation failed. Missing or invalid values detected:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR

    configure_logging(settings.log_level)

    try:
        count = asyncio.run(_run(sweeper or _build_sweeper(settings), args.dry_run))
    except StorageUnavailableError as exc:
        logger.error("Sweep aborted, storage unavailable: %s", exc)
        return EXIT_STORAGE_UNAVAILABLE
    except Exception:  # pylint: disable=broad-except
        logger.exception("Unexpected error during sweep")
        return EXIT_RUNTIME_ERROR

    verb = "would delete" if args.dry_run else "deleted"
    print(f"Expired pages {verb}: {count}")
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
