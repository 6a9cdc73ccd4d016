"""Convert "every N months" into a day offset.

The projector only moves forward in whole days, so a month-based rule is
turned into the number of days between the current occurrence and the next.
When a target month is too short for the anchor day-of-month the occurrence
is clamped to that month's last day and the shortfall is carried as
*leftover days* into the following step.
"""

from __future__ import annotations

from day_math import DaysInMonth, shift_month


def day_count_from_month_count(
    year: int,
    month: int,
    month_count: int,
    anchor_day: int,
    leftover_days: int,
    days_in_month: DaysInMonth,
) -> tuple[int, int]:
    """Return ``(day_count, leftover_days)`` for advancing *month_count* months.

    ``year``/``month`` locate the current occurrence (0-based month) and
    ``anchor_day`` is the reminder's original 1-based day of the month.
    """
    day_count = 0
    for i in range(1, month_count + 1):
        target_days = days_in_month(*shift_month(year, month, i))
        if anchor_day > target_days:
            leftover_days = anchor_day - target_days
            day_count += target_days
        else:
            day_count += days_in_month(*shift_month(year, month, i - 1)) + leftover_days
            leftover_days = 0
    return day_count, leftover_days


def next_month_offset(
    year: int,
    month: int,
    anchor_day: int,
    leftover_days: int,
    days_in_month: DaysInMonth,
) -> tuple[int, int]:
    """Offset to the same day-of-month one month later."""
    return day_count_from_month_count(year, month, 1, anchor_day, leftover_days, days_in_month)
