"""Core data structures for calendar reminders."""

from __future__ import annotations

import re
import secrets
from dataclasses import dataclass, field
from typing import Callable

from time_date import FIRST_WEEKDAYS, SUNDAY_FIRST, TimeDateService
from weekday_gaps import rotate_weekdays

REPEAT_TYPES = ("custom", "week", "month", "weekday")
GAP_UNITS = ("days", "weeks", "months")
TIME_PATTERN = re.compile(r"^([01]?\d|2[0-3]):[0-5]\d$")


class ReminderValidationError(ValueError):
    """Raised when a reminder or its repeat rule is malformed."""


def new_reminder_id() -> str:
    return secrets.token_hex(8)


@dataclass
class ReminderRange:
    """Optional time range; ``start`` is ``None`` for all-day reminders."""

    start: str | None = None
    end: str | None = None

    def validate(self) -> None:
        for name, value in (("start", self.start), ("end", self.end)):
            if value and not TIME_PATTERN.match(value):
                raise ReminderValidationError(f"Range {name} must be H:MM or HH:MM, got {value!r}")
        if self.end and not self.start:
            raise ReminderValidationError("Range end needs a start time")

    def to_dict(self) -> dict:
        return {"from": self.start, "to": self.end}

    @classmethod
    def from_dict(cls, data: dict | None) -> ReminderRange:
        data = data or {}
        return cls(start=data.get("from"), end=data.get("to"))


@dataclass
class RepeatRule:
    """How a reminder repeats after its anchor date.

    ``count`` is the total number of occurrences including the anchor;
    ``0`` repeats indefinitely.  ``weekdays`` is the authored set of seven
    flags, ordered according to ``first_weekday`` (0 = Sunday-first,
    1 = Monday-first).
    """

    type: str
    gap: int = 1
    gap_unit: str = "days"
    count: int = 0
    weekdays: list[bool] | None = None
    first_weekday: int = SUNDAY_FIRST

    def validate(self) -> None:
        if self.type not in REPEAT_TYPES:
            raise ReminderValidationError(f"Unknown repeat type: {self.type!r}")
        if self.count < 0:
            raise ReminderValidationError("Repeat count must not be negative")
        if self.type == "custom":
            if self.gap_unit not in GAP_UNITS:
                raise ReminderValidationError(f"Unknown gap unit: {self.gap_unit!r}")
            if self.gap < 1:
                raise ReminderValidationError("Repeat gap must be a positive integer")
        elif self.type == "weekday":
            if self.weekdays is None or len(self.weekdays) != 7:
                raise ReminderValidationError("Weekday rule needs exactly 7 weekday flags")
            if not any(self.weekdays):
                raise ReminderValidationError("Weekday rule needs at least one active weekday")
            if self.first_weekday not in FIRST_WEEKDAYS:
                raise ReminderValidationError("first_weekday must be 0 or 1")

    def effective_weekdays(self, calendar_first_weekday: int) -> list[bool]:
        """The authored weekday set re-ordered to the calendar's first weekday."""
        return rotate_weekdays(self.weekdays, self.first_weekday, calendar_first_weekday)

    def to_dict(self) -> dict:
        d: dict = {
            "type": self.type,
            "gap": self.gap,
            "gap_unit": self.gap_unit,
            "count": self.count,
        }
        if self.type == "weekday":
            d["weekdays"] = list(self.weekdays or [])
            d["first_weekday"] = self.first_weekday
        return d

    @classmethod
    def from_dict(cls, data: dict) -> RepeatRule:
        raw_weekdays = data.get("weekdays")
        # Older documents wrap the flags as {"static": [...]}.
        if isinstance(raw_weekdays, dict):
            raw_weekdays = raw_weekdays.get("static")
        return cls(
            type=data["type"],
            gap=int(data.get("gap") or 1),
            gap_unit=data.get("gap_unit", "days"),
            count=int(data.get("count") or 0),
            weekdays=[bool(w) for w in raw_weekdays] if raw_weekdays is not None else None,
            first_weekday=int(data.get("first_weekday", SUNDAY_FIRST)),
        )


@dataclass
class Reminder:
    """A reminder anchored on one calendar day.

    ``month`` is 0-based and ``day`` is the 1-based day of the month.
    """

    year: int
    month: int
    day: int
    text: str = ""
    color: str | None = None
    range: ReminderRange = field(default_factory=ReminderRange)
    repeat: RepeatRule | None = None
    id: str = field(default_factory=new_reminder_id)

    def validate(self, days_in_month: Callable[[int, int], int]) -> None:
        """Check the anchor date and repeat rule; raise ReminderValidationError."""
        if not 0 <= self.month <= 11:
            raise ReminderValidationError(f"Month index out of range: {self.month}")
        last_day = days_in_month(self.year, self.month)
        if not 1 <= self.day <= last_day:
            raise ReminderValidationError(
                f"Day {self.day} does not exist in {self.year}-{self.month + 1:02d}"
            )
        self.range.validate()
        if self.repeat is not None:
            self.repeat.validate()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "year": self.year,
            "month": self.month,
            "day": self.day,
            "text": self.text,
            "color": self.color,
            "range": self.range.to_dict(),
            "repeat": self.repeat.to_dict() if self.repeat is not None else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Reminder:
        raw_repeat = data.get("repeat")
        return cls(
            id=data.get("id") or new_reminder_id(),
            year=int(data["year"]),
            month=int(data["month"]),
            day=int(data["day"]),
            text=data.get("text", ""),
            color=data.get("color"),
            range=ReminderRange.from_dict(data.get("range")),
            repeat=RepeatRule.from_dict(raw_repeat) if raw_repeat else None,
        )


def range_text(range_: ReminderRange, time_date: TimeDateService) -> str:
    """Human readable time range ("All day", "09:00" or "09:00 - 10:30")."""
    if not range_.start:
        return "All day"
    if range_.end:
        return f"{time_date.time_string(range_.start)} - {time_date.time_string(range_.end)}"
    return time_date.time_string(range_.start)


def _join_names(names: list[str]) -> str:
    if len(names) <= 1:
        return "".join(names)
    if len(names) == 2:
        return f"{names[0]} and {names[1]}"
    return f"{', '.join(names[:-1])}, and {names[-1]}"


def repeat_tooltip(rule: RepeatRule, time_date: TimeDateService) -> str:
    if rule.type == "custom":
        times = f"{rule.count} times " if rule.count > 1 else ""
        every = rule.gap_unit[:-1] if rule.gap == 1 else f"{rule.gap} {rule.gap_unit}"
        return f"Repeating {times}every {every}"
    if rule.type == "week":
        return "Repeating every week"
    if rule.type == "month":
        return "Repeating every month"
    weekdays = rule.effective_weekdays(time_date.first_weekday)
    if all(weekdays):
        return "Repeating every weekday"
    names = time_date.weekday_names()
    return f"Repeating every {_join_names([n for n, on in zip(names, weekdays) if on])}"
