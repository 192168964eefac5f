"""Generators for page identifiers and creator tokens."""

from __future__ import annotations

import secrets
import string
import uuid

TOKEN_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits
DEFAULT_TOKEN_LENGTH = 32


def generate_token(length: int = DEFAULT_TOKEN_LENGTH) -> str:
    """Return an opaque creator token drawn uniformly from ``TOKEN_ALPHABET``."""
    if length <= 0:
        raise ValueError("Token length must be positive.")
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))


def generate_page_uuid() -> str:
    """Return a canonical lowercase UUIDv4 string for a new page."""
    return str(uuid.uuid4())


__all__ = ["DEFAULT_TOKEN_LENGTH", "TOKEN_ALPHABET", "generate_page_uuid", "generate_token"]
