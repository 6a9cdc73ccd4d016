"""Day gaps between the active weekdays of a weekday repeat rule."""

from __future__ import annotations

from time_date import SUNDAY_FIRST


def rotate_weekdays(weekdays: list[bool], authored_first_weekday: int, calendar_first_weekday: int) -> list[bool]:
    """Re-order a weekday set authored Sunday-first or Monday-first.

    Sunday-first flags moved to a Monday-first calendar shift front-to-back
    (Sunday goes last); the other direction shifts back-to-front.
    """
    weekdays = list(weekdays)
    if authored_first_weekday == calendar_first_weekday:
        return weekdays
    if authored_first_weekday == SUNDAY_FIRST:
        return weekdays[1:] + weekdays[:1]
    return weekdays[-1:] + weekdays[:-1]


def weekday_gaps(anchor_weekday: int, weekdays: list[bool]) -> list[int]:
    """Return the cyclic day gaps between consecutive active weekdays.

    Walks the seven weekdays that follow *anchor_weekday*; every active one
    closes the current gap.  The first gap leads from the anchor to the next
    active weekday.  When the anchor itself is active the gaps sum to 7.
    """
    if not any(weekdays):
        raise ValueError("At least one weekday must be active")
    gaps: list[int] = []
    gap = 1
    weekday = anchor_weekday
    for _ in range(7):
        weekday = (weekday + 1) % 7
        if weekdays[weekday]:
            gaps.append(gap)
            gap = 1
        else:
            gap += 1
    return gaps
