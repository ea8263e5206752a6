"""
Shared date arithmetic for cycle-related services.

All functions operate on calendar dates, so a difference in days is already
the ceiling of the elapsed time.
"""
import math
from datetime import date
from statistics import mean
from typing import Iterable, Optional


def days_between(start: date, end: date) -> int:
    """
    Plain difference in days between two dates.

    Args:
        start: Earlier date
        end: Later date

    Returns:
        Number of days from start to end (negative if end is before start)

    Example:
        >>> days_between(date(2024, 1, 1), date(2024, 1, 29))
        28
    """
    return (end - start).days


def days_between_inclusive(start: date, end: date) -> int:
    """
    Count of days covered by a range, counting both ends.

    A period that starts and ends on the same day lasts one day.

    Example:
        >>> days_between_inclusive(date(2024, 1, 1), date(2024, 1, 5))
        5
    """
    return days_between(start, end) + 1


def days_until(target: date, today: date) -> int:
    """Days from today until target, negative once target has passed."""
    return days_between(today, target)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded up (27.5 -> 28, 26.5 -> 27)."""
    return int(math.floor(value + 0.5))


def mean_or_none(values: Iterable[int]) -> Optional[float]:
    """Arithmetic mean, or None for an empty sequence."""
    values = list(values)
    if not values:
        return None
    return mean(values)
