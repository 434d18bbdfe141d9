"""Descriptive statistics for peer-group comparisons."""

from __future__ import annotations

import math
from collections.abc import Sequence


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean; 0 for an empty sample."""
    if not values:
        return 0.0
    return sum(values) / len(values)


def std_dev(values: Sequence[float]) -> float:
    """Sample standard deviation with Bessel's correction; 0 when n < 2."""
    if len(values) < 2:
        return 0.0
    m = mean(values)
    variance = sum((v - m) ** 2 for v in values) / (len(values) - 1)
    return math.sqrt(variance)


def z_score(value: float, m: float, sd: float) -> float:
    """Standard score of ``value``; 0 when the deviation is 0."""
    if sd == 0:
        return 0.0
    return (value - m) / sd


def is_round_number(amount: float) -> bool:
    """True for amounts that are whole multiples of 50."""
    return amount % 100 == 0 or amount % 50 == 0
