"""Vital-sign parsing helpers."""

from __future__ import annotations

import re

BLOOD_PRESSURE_PATTERN = re.compile(r"(\d+)\s*/\s*(\d+)")


def parse_blood_pressure(value: str | None) -> tuple[int, int] | None:
    """Parse a "systolic/diastolic" reading such as ``"128/76"``.

    Returns:
        ``(systolic, diastolic)`` or None when no reading is found.
    """
    if not value:
        return None
    match = BLOOD_PRESSURE_PATTERN.search(value)
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))
