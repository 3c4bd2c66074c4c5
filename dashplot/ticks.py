"""Horizontal tick selection for ranked category axes.

The interval is half of the largest power of ten below the maximum index:
a max of 37 gives 5, a max of 420 gives 50. Single-digit maxima give an
interval of 0.5, which divides every integer, so small axes keep every tick.
"""

from __future__ import annotations

from collections.abc import Iterable
import math


def digit_count(value: float) -> int:
    """Decimal digits in the integer part of ``|value|`` (0 counts as one digit)."""
    magnitude = int(abs(value))
    if magnitude == 0:
        return 1
    return len(str(magnitude))


def tick_interval(max_value: float) -> float:
    return 10 ** (digit_count(max_value) - 1) / 2


def filter_ticks(domain: Iterable[float]) -> list[float]:
    values = list(domain)
    if not values:
        return []
    interval = tick_interval(max(values))
    return [v for v in values if math.fmod(v, interval) == 0]
