"""Timestamps.

Every instant that crosses a boundary (quote tokens, stored records) is
UTC with millisecond precision, so a value written and read back compares
equal to the original.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

from settlement.domain.exceptions import ValidationError

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return normalize_instant(datetime.now(timezone.utc))


def normalize_instant(value: datetime) -> datetime:
    """Convert an aware datetime to UTC truncated to milliseconds."""
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValidationError(f"Timestamp must be timezone-aware, got {value.isoformat()}")
    value = value.astimezone(timezone.utc)
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


def format_instant(value: datetime) -> str:
    """Render as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    value = normalize_instant(value)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_instant(raw: str) -> datetime:
    """Parse an ISO-8601 instant; a trailing ``Z`` is accepted."""
    if not isinstance(raw, str) or not raw:
        raise ValidationError(f"Invalid timestamp: {raw!r}")
    text = raw[:-1] + "+00:00" if raw.endswith("Z") else raw
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise ValidationError(f"Invalid timestamp: {raw!r}") from exc
    return normalize_instant(parsed)
