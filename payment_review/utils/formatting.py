"""Number, currency and timestamp formatting used in findings and summaries."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded toward +infinity.

    Python's ``round`` uses banker's rounding; review arithmetic rounds
    2.5 to 3 and -2.5 to -2.
    """
    return int(math.floor(value + 0.5))


def format_amount(value: float) -> str:
    """Format an amount with thousands separators.

    Whole amounts print without a fractional part (``12,400``); other
    amounts keep up to three decimals with trailing zeros dropped
    (``1,234.5``).
    """
    rounded = round(value, 3)
    if rounded == int(rounded):
        return f"{int(rounded):,}"
    return f"{rounded:,.3f}".rstrip("0")


def utc_timestamp() -> str:
    """Current UTC time as ISO 8601 with milliseconds and a ``Z`` suffix."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def pluralize(count: int, word: str, plural: str | None = None) -> str:
    """Return ``"1 finding"`` / ``"3 findings"`` style text."""
    if count == 1:
        return f"{count} {word}"
    return f"{count} {plural or word + 's'}"


def to_fixed(value: float, digits: int = 0) -> str:
    """Fixed-point text with halves rounded away from zero.

    ``to_fixed(2.5)`` is ``"3"`` where ``f"{2.5:.0f}"`` gives ``"2"``.
    """
    quantum = Decimal(1).scaleb(-digits)
    return str(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))
