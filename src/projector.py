"""Walks recurring reminders forward into the calendar grid.

Each recurring reminder owns a resumable cursor (``NextRepeat``) kept in a
``ProjectionStore`` keyed by reminder id.  A projection run inserts the
reminder into every day it can reach and stops either when the repeat count
is used up (``done``) or when the next occurrence falls into a year that has
not been materialized yet.  In the latter case the cursor is left in place and
the run is picked up again by ``Projector.resume`` once that year exists.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from day_math import normalize_day_offset
from month_count import day_count_from_month_count, next_month_offset
from reminder import Reminder
from time_date import TimeDateService
from weekday_gaps import weekday_gaps

if TYPE_CHECKING:
    from calendar_grid import Calendar

logger = logging.getLogger(__name__)


@dataclass
class NextRepeat:
    """Cursor pointing at the next occurrence still to be inserted.

    ``day`` is a 0-based index into the month and may temporarily run past
    the month's end.  ``repeats`` counts the occurrences left for a finite
    rule; it stays ``0`` for rules that repeat indefinitely.
    """

    year: int
    month: int
    day: int
    repeats: int = 0
    gap_index: int = 0
    gaps: list[int] | None = None
    leftover_days: int = 0
    done: bool = False

    def to_dict(self) -> dict:
        return {
            "year": self.year,
            "month": self.month,
            "day": self.day,
            "repeats": self.repeats,
            "gap_index": self.gap_index,
            "gaps": list(self.gaps) if self.gaps is not None else None,
            "leftover_days": self.leftover_days,
            "done": self.done,
        }

    @classmethod
    def from_dict(cls, data: dict) -> NextRepeat:
        raw_gaps = data.get("gaps")
        return cls(
            year=data["year"],
            month=data["month"],
            day=data["day"],
            repeats=data.get("repeats", 0),
            gap_index=data.get("gap_index", 0),
            gaps=list(raw_gaps) if raw_gaps is not None else None,
            leftover_days=data.get("leftover_days", 0),
            done=data.get("done", False),
        )


class ProjectionStore:
    """Cursors keyed by reminder id, with change tracking for persistence."""

    def __init__(self, cursors: dict[str, NextRepeat] | None = None) -> None:
        self._cursors: dict[str, NextRepeat] = dict(cursors or {})
        self._dirty: set[str] = set()

    def __contains__(self, reminder_id: str) -> bool:
        return reminder_id in self._cursors

    def __len__(self) -> int:
        return len(self._cursors)

    def get(self, reminder_id: str) -> NextRepeat | None:
        return self._cursors.get(reminder_id)

    def put(self, reminder_id: str, cursor: NextRepeat) -> None:
        self._cursors[reminder_id] = cursor
        self._dirty.add(reminder_id)

    def mark_dirty(self, reminder_id: str) -> None:
        self._dirty.add(reminder_id)

    def reset(self, reminder_id: str) -> None:
        """Discard a cursor so the next run starts again from the anchor."""
        if self._cursors.pop(reminder_id, None) is not None:
            self._dirty.add(reminder_id)

    def reset_all(self) -> None:
        self._dirty.update(self._cursors)
        self._cursors.clear()

    def pop_dirty(self) -> dict[str, NextRepeat | None]:
        """Return cursors changed since the last call (``None`` = discarded)."""
        changed = {rid: self._cursors.get(rid) for rid in sorted(self._dirty)}
        self._dirty.clear()
        return changed

    def to_dict(self) -> dict:
        return {rid: cursor.to_dict() for rid, cursor in self._cursors.items()}

    @classmethod
    def from_dict(cls, data: dict) -> ProjectionStore:
        return cls({rid: NextRepeat.from_dict(raw) for rid, raw in data.items()})


class Projector:
    def __init__(self, time_date: TimeDateService, cursors: ProjectionStore | None = None) -> None:
        self.time_date = time_date
        self.cursors = cursors if cursors is not None else ProjectionStore()

    def start(self, reminder: Reminder) -> NextRepeat:
        """Build the initial cursor for *reminder*, positioned on its anchor."""
        rule = reminder.repeat
        gaps = None
        if rule.type == "weekday":
            anchor_weekday = self.time_date.weekday_of(reminder.year, reminder.month, reminder.day)
            gaps = weekday_gaps(anchor_weekday, rule.effective_weekdays(self.time_date.first_weekday))
        return NextRepeat(
            year=reminder.year,
            month=reminder.month,
            day=reminder.day - 1,
            repeats=rule.count,
            gaps=gaps,
        )

    def project(self, calendar: Calendar, reminder: Reminder, replace_id: str | None = None) -> int:
        """Insert occurrences of *reminder* until it is done or suspended.

        With *replace_id* an existing entry with that id is replaced in each
        day reached instead of appending a second copy.  Returns the number
        of days the reminder was inserted into.
        """
        cursor = self.cursors.get(reminder.id)
        if cursor is None:
            cursor = self.start(reminder)
            self.cursors.put(reminder.id, cursor)
        if cursor.done:
            return 0

        inserted = 0
        while True:
            position = normalize_day_offset(
                cursor.year, cursor.month, cursor.day,
                self.time_date.days_in_month, calendar.has_year,
            )
            cursor.year, cursor.month, cursor.day = position.year, position.month, position.day
            if not position.resolved:
                logger.debug(
                    "suspend id=%s year=%d month=%d day=%d inserted=%d",
                    reminder.id, cursor.year, cursor.month, cursor.day, inserted,
                )
                break

            calendar.day_at(cursor.year, cursor.month, cursor.day).add_reminder(reminder, replace_id)
            inserted += 1

            if cursor.repeats > 0:
                cursor.repeats -= 1
                if cursor.repeats == 0:
                    cursor.done = True
                    logger.info("projection done id=%s", reminder.id)
                    break

            cursor.day += self._next_offset(reminder, cursor)

        if inserted:
            self.cursors.mark_dirty(reminder.id)
        return inserted

    def resume(self, calendar: Calendar, reminder: Reminder) -> int:
        """Continue a paused projection whose next year is now available."""
        cursor = self.cursors.get(reminder.id)
        if reminder.repeat is None or cursor is None or cursor.done:
            return 0
        if cursor.year not in calendar:
            return 0
        return self.project(calendar, reminder)

    def reset(self, reminder_id: str) -> None:
        """Forget the cursor; the next projection restarts from the anchor."""
        self.cursors.reset(reminder_id)

    def _next_offset(self, reminder: Reminder, cursor: NextRepeat) -> int:
        rule = reminder.repeat
        days_in_month = self.time_date.days_in_month

        if rule.type == "week":
            return 7
        if rule.type == "weekday":
            gap = cursor.gaps[cursor.gap_index]
            cursor.gap_index = (cursor.gap_index + 1) % len(cursor.gaps)
            return gap
        if rule.type == "month":
            offset, cursor.leftover_days = next_month_offset(
                cursor.year, cursor.month, reminder.day, cursor.leftover_days, days_in_month,
            )
            return offset
        # custom
        if rule.gap_unit == "days":
            return rule.gap
        if rule.gap_unit == "weeks":
            return rule.gap * 7
        offset, cursor.leftover_days = day_count_from_month_count(
            cursor.year, cursor.month, rule.gap, reminder.day, cursor.leftover_days, days_in_month,
        )
        return offset
