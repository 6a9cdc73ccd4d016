"""Date lookups and display strings used by the calendar grid.

Months are 0-based (0 = January) to match the stored reminder documents.
Weekday indexes are relative to the configured first weekday, so index 0 is
always the first column of the rendered grid.
"""

from __future__ import annotations

import calendar
from datetime import date

SUNDAY_FIRST = 0
MONDAY_FIRST = 1
FIRST_WEEKDAYS = (SUNDAY_FIRST, MONDAY_FIRST)


class TimeDateService:
    """Default implementation of the date-formatting collaborator."""

    def __init__(self, first_weekday: int = MONDAY_FIRST) -> None:
        if first_weekday not in FIRST_WEEKDAYS:
            raise ValueError(f"first_weekday must be 0 or 1, got {first_weekday!r}")
        self.first_weekday = first_weekday

    def days_in_month(self, year: int, month: int) -> int:
        return calendar.monthrange(year, month + 1)[1]

    def weekday_of(self, year: int, month: int, day: int) -> int:
        # date.weekday() is Monday=0
        weekday = date(year, month + 1, day).weekday()
        if self.first_weekday == SUNDAY_FIRST:
            return (weekday + 1) % 7
        return weekday

    def first_day_index(self, year: int, month: int) -> int:
        return self.weekday_of(year, month, 1)

    def month_name(self, month: int) -> str:
        return calendar.month_name[month + 1]

    def weekday_names(self, style: str = "long") -> list[str]:
        """Weekday names in grid order (starting at the first weekday)."""
        names = list(calendar.day_abbr if style == "short" else calendar.day_name)
        if self.first_weekday == SUNDAY_FIRST:
            names = names[-1:] + names[:-1]
        return names

    def weekday_name(self, weekday: int) -> str:
        return self.weekday_names()[weekday]

    def format_date(self, year: int, month: int, day: int = 1, *, exclude_day: bool = False) -> str:
        if exclude_day:
            return f"{self.month_name(month)} {year}"
        return f"{self.month_name(month)} {day}, {year}"

    def time_string(self, value: str) -> str:
        """Normalize an ``H:MM`` / ``HH:MM`` string to ``HH:MM``."""
        hours, _, minutes = value.partition(":")
        return f"{int(hours):02d}:{int(minutes or 0):02d}"


def current_date(today: date | None = None) -> tuple[int, int, int]:
    """Return ``(year, month, day)`` for *today* with a 0-based month."""
    if today is None:
        today = date.today()
    return today.year, today.month - 1, today.day
