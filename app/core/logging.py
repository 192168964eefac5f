"""
Logging utilities for the API process and the maintenance scripts.

Token values never reach the logs; callers log page ids and decisions only.
"""

import logging
import sys

_NOISY_LOGGERS = ("botocore", "boto3", "urllib3")


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging with the shared line format."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


__all__ = ["configure_logging"]
