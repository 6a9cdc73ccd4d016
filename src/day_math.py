"""Day-offset arithmetic across month and year boundaries.

Positions are ``(year, month, day)`` with a 0-based month and a 0-based day
index into that month.  The day index may run past the end of the month; the
helpers here fold such overflow into later months and years.
"""

from __future__ import annotations

from typing import Callable, NamedTuple

DaysInMonth = Callable[[int, int], int]


class DayPosition(NamedTuple):
    year: int
    month: int
    day: int
    resolved: bool


def shift_month(year: int, month: int, months: int) -> tuple[int, int]:
    """Return ``(year, month)`` moved by *months* (may be negative)."""
    index = year * 12 + month + months
    return index // 12, index % 12


def normalize_day_offset(
    year: int,
    month: int,
    day: int,
    days_in_month: DaysInMonth,
    is_materialized: Callable[[int], bool],
) -> DayPosition:
    """Fold an overflowing day index into the month it actually falls in.

    Stops as soon as the position reaches a year that is not materialized and
    returns the partially folded position with ``resolved=False``; folding
    that position again once the year exists gives the same result as folding
    the original one.
    """
    while is_materialized(year):
        length = days_in_month(year, month)
        if day < length:
            return DayPosition(year, month, day, True)
        day -= length
        year, month = shift_month(year, month, 1)
    return DayPosition(year, month, day, False)
