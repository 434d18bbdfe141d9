"""Shared utility functions for payment integrity review."""

from .date_parser import days_apart, parse_flexible_date, parse_flexible_datetime
from .formatting import format_amount, pluralize, round_half_up, to_fixed, utc_timestamp
from .vitals import parse_blood_pressure

__all__ = [
    "days_apart",
    "format_amount",
    "parse_blood_pressure",
    "parse_flexible_date",
    "parse_flexible_datetime",
    "pluralize",
    "round_half_up",
    "to_fixed",
    "utc_timestamp",
]
