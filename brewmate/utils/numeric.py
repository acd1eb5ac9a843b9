"""Small numeric helpers shared by the learning and analytics code."""

from __future__ import annotations

import math
from typing import Any


def clamp(value: float, lower: float = 0.0, upper: float = 10.0) -> float:
    """Bound ``value`` to ``[lower, upper]``; NaN collapses to ``lower``."""
    if math.isnan(value):
        return lower
    return min(upper, max(lower, value))


def clamp_preference(value: float, lower: float = 0.0, upper: float = 10.0) -> float:
    """Clamp and round to the three decimals stored on profiles."""
    return round(clamp(value, lower, upper), 3)


def mean(values: list[float]) -> float:
    """Arithmetic mean that returns 0 for an empty list."""
    if not values:
        return 0.0
    return sum(values) / len(values)


def to_number(value: Any, default: float = 0.0) -> float:
    """Read a free-form metadata value as a finite float, else ``default``."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return number
