"""Boundary validation — rejects bad caller input before any derivation runs."""
from __future__ import annotations

import re

from ..config import PaginationConfig

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


class InvalidInputError(ValueError):
    """Caller-supplied input is malformed or out of range."""


def validate_address(address: str) -> str:
    """Return ``address`` lower-cased, or raise for anything but a 20-byte hex address."""
    if not isinstance(address, str) or not _ADDRESS_RE.match(address.strip()):
        raise InvalidInputError(f"Invalid Ethereum address: {address!r}")
    return address.strip().lower()


def validate_pagination(
    page: int | None, limit: int | None, config: PaginationConfig
) -> tuple[int, int]:
    page = 1 if page is None else page
    limit = config.default_limit if limit is None else limit
    if page < 1:
        raise InvalidInputError(f"page must be >= 1, got {page}")
    if not 1 <= limit <= config.max_limit:
        raise InvalidInputError(
            f"limit must be between 1 and {config.max_limit}, got {limit}"
        )
    return page, limit
