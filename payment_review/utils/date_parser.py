"""Date parsing utilities for claims review."""

from __future__ import annotations

from datetime import datetime, timezone

# Reasonable date bounds for healthcare claims
MIN_VALID_YEAR = 1900
MAX_VALID_YEAR = 2100


def parse_flexible_date(date_str: str | None) -> datetime | None:
    """Parse date from multiple common formats with validation.

    Supports the following formats:
    - ISO 8601: YYYY-MM-DD (e.g., 2024-01-15)
    - ISO 8601 timestamp: YYYY-MM-DDTHH:MM:SS[.fff][Z] (date part is kept)
    - US format: MM/DD/YYYY (e.g., 01/15/2024)
    - Compact: YYYYMMDD (e.g., 20240115)

    Args:
        date_str: Date string to parse, or None

    Returns:
        Parsed datetime at midnight, or None if parsing fails or input is None

    Examples:
        >>> parse_flexible_date("2024-01-15")
        datetime.datetime(2024, 1, 15, 0, 0)
        >>> parse_flexible_date("2024-01-15T08:30:00.000Z")
        datetime.datetime(2024, 1, 15, 0, 0)
        >>> parse_flexible_date("2024-02-30")
        None
    """
    if not date_str:
        return None

    value = date_str.strip()
    if "T" in value:
        value = value.split("T", 1)[0]

    formats = [
        "%Y-%m-%d",  # ISO 8601
        "%m/%d/%Y",  # US format
        "%Y%m%d",  # Compact
    ]

    for fmt in formats:
        try:
            parsed = datetime.strptime(value, fmt)
            if parsed.year < MIN_VALID_YEAR or parsed.year > MAX_VALID_YEAR:
                continue
            return parsed
        except ValueError:
            continue

    return None


def parse_flexible_datetime(date_str: str | None) -> datetime | None:
    """Parse a date or ISO 8601 timestamp, keeping the time of day.

    Timestamps with an offset (or a trailing ``Z``) are converted to UTC.
    All results are naive; plain dates are midnight.

    Examples:
        >>> parse_flexible_datetime("2024-01-15T08:30:00.000Z")
        datetime.datetime(2024, 1, 15, 8, 30)
    """
    if not date_str:
        return None

    value = date_str.strip()
    if "T" not in value:
        return parse_flexible_date(value)

    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    if parsed.year < MIN_VALID_YEAR or parsed.year > MAX_VALID_YEAR:
        return None
    return parsed


def days_apart(date_a: str | None, date_b: str | None) -> float | None:
    """Absolute distance in days between two dates or timestamps.

    Time of day counts, so ``2024-01-01T18:00:00Z`` and ``2024-01-08`` are
    6.25 days apart. Returns None when either side cannot be parsed.
    """
    first = parse_flexible_datetime(date_a)
    second = parse_flexible_datetime(date_b)
    if first is None or second is None:
        return None
    return abs((first - second).total_seconds()) / 86400
