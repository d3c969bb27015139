"""Timestamp normalization — indexer rows mix seconds, milliseconds and ISO strings."""
from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any

MS_PER_SECOND = 1000
MS_PER_HOUR = 3_600_000
MS_PER_DAY = 86_400_000

# Values below this are read as seconds. 10^12 ms is September 2001, so no
# realistic millisecond timestamp falls under it.
SECONDS_THRESHOLD = 10**12


def normalize_timestamp(value: Any) -> int | None:
    """Return ``value`` as epoch milliseconds, or None when it cannot be read.

    Examples:
        1700000000      → 1700000000000
        "1700000000000" → 1700000000000
        "2023-11-14T22:13:20Z" → 1700000000000
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp() * MS_PER_SECOND)

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return _from_number(int(text))
        except ValueError:
            pass
        try:
            return _from_number(float(text))
        except ValueError:
            pass
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
        return normalize_timestamp(parsed)

    if isinstance(value, (int, float)):
        return _from_number(value)

    return None


def _from_number(value: int | float) -> int | None:
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if value <= 0:
        return None
    if value < SECONDS_THRESHOLD:
        return int(value * MS_PER_SECOND)
    return int(value)


def days_between(start_ms: int, end_ms: int) -> int:
    """Whole days from ``start_ms`` to ``end_ms`` (floored, negative when reversed)."""
    return (end_ms - start_ms) // MS_PER_DAY


def to_iso(ms: int | None) -> str | None:
    """Render epoch milliseconds as a UTC ISO-8601 string."""
    if ms is None:
        return None
    moment = datetime.fromtimestamp(ms / MS_PER_SECOND, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")
