"""Lazily materialized calendar grid and the manager that drives projection.

``Calendar`` holds one entry per materialized year, each a list of twelve
``Month`` objects.  Years are built on first reference through
``Calendar.ensure_year`` and the materialized range is always contiguous.
``CalendarManager`` owns the reminders and, whenever new years appear,
resumes every projection that was waiting for them.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, field
from datetime import date

from day_math import shift_month
from projector import ProjectionStore, Projector
from reminder import Reminder
from time_date import TimeDateService, current_date

logger = logging.getLogger(__name__)

GRID_CELLS = 42


@dataclass(eq=False)
class Day:
    year: int
    month: int
    day: int
    date_string: str
    reminders: list[Reminder] = field(default_factory=list)
    is_current_day: bool = False
    id: str = field(default_factory=lambda: secrets.token_hex(6))

    def add_reminder(self, reminder: Reminder, replace_id: str | None = None) -> None:
        """Append *reminder*, or put it in place of the entry with *replace_id*."""
        if replace_id is not None:
            for index, existing in enumerate(self.reminders):
                if existing.id == replace_id:
                    self.reminders[index] = reminder
                    return
        self.reminders.append(reminder)

    def remove_reminder(self, reminder_id: str, keep: Reminder | None = None) -> bool:
        """Drop entries with *reminder_id*, except the object *keep* itself."""
        before = len(self.reminders)
        self.reminders = [
            r for r in self.reminders
            if r.id != reminder_id or (keep is not None and r is keep)
        ]
        return len(self.reminders) != before


@dataclass(eq=False)
class Month:
    year: int
    month: int
    name: str
    date_string: str
    first_day_index: int
    days: list[Day] = field(default_factory=list)
    is_current_month: bool = False


@dataclass
class VisibleMonth:
    """A 42-cell month view padded with days of the adjacent months."""

    year: int
    month: int
    name: str
    date_string: str
    days: list[Day]
    previous_name: str
    previous_days: list[Day]
    next_name: str
    next_days: list[Day]


class Calendar:
    """Year-indexed grid that only grows, one contiguous range of years."""

    def __init__(self, time_date: TimeDateService) -> None:
        self.time_date = time_date
        self._years: dict[int, list[Month]] = {}

    def has_year(self, year: int) -> bool:
        return year in self._years

    def __contains__(self, year: int) -> bool:
        return year in self._years

    def __getitem__(self, year: int) -> list[Month]:
        return self._years[year]

    def __len__(self) -> int:
        return len(self._years)

    @property
    def years(self) -> list[int]:
        return sorted(self._years)

    def ensure_year(self, year: int) -> list[int]:
        """Materialize *year* and any years between it and the current range.

        Returns the years that were created, in creation order.
        """
        if not self._years:
            targets = [year]
        elif year > max(self._years):
            targets = list(range(max(self._years) + 1, year + 1))
        elif year < min(self._years):
            targets = list(range(min(self._years) - 1, year - 1, -1))
        else:
            return []
        for target in targets:
            self._years[target] = self._generate_year(target)
            logger.debug("materialize year=%d", target)
        return targets

    def _generate_year(self, year: int) -> list[Month]:
        td = self.time_date
        months = []
        for month_index in range(12):
            month = Month(
                year=year,
                month=month_index,
                name=td.month_name(month_index),
                date_string=td.format_date(year, month_index, exclude_day=True),
                first_day_index=td.first_day_index(year, month_index),
            )
            for day in range(1, td.days_in_month(year, month_index) + 1):
                month.days.append(Day(
                    year=year,
                    month=month_index,
                    day=day,
                    date_string=td.format_date(year, month_index, day),
                ))
            months.append(month)
        return months

    def day_at(self, year: int, month: int, day_index: int) -> Day:
        """Day cell by 0-based day index."""
        return self._years[year][month].days[day_index]

    def get_day(self, year: int, month: int, day: int) -> Day:
        """Day cell by 1-based day of the month."""
        return self.day_at(year, month, day - 1)

    def iter_days(self):
        for year in self.years:
            for month in self._years[year]:
                yield from month.days

    def remove_reminder(self, reminder_id: str, keep: Reminder | None = None) -> int:
        """Remove a reminder from every day; returns the number of days touched."""
        return sum(1 for day in self.iter_days() if day.remove_reminder(reminder_id, keep))


class CalendarManager:
    """Owns the calendar, the reminder collection and their cursors."""

    def __init__(
        self,
        time_date: TimeDateService | None = None,
        cursors: ProjectionStore | None = None,
    ) -> None:
        self.time_date = time_date if time_date is not None else TimeDateService()
        self.cursors = cursors if cursors is not None else ProjectionStore()
        self.projector = Projector(self.time_date, self.cursors)
        self.calendar = Calendar(self.time_date)
        self.reminders: list[Reminder] = []
        self.today = date.today()
        self.visible_year, self.visible_month_index, _ = current_date(self.today)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, reminders: list[Reminder] | None = None, today: date | None = None) -> None:
        """Build a fresh calendar around *today* and project every reminder.

        Day lists are rebuilt from scratch, so every cursor is rebuilt from
        its reminder's anchor as well.
        """
        if today is not None:
            self.today = today
        year, month, day = current_date(self.today)
        self.cursors.reset_all()
        self.calendar = Calendar(self.time_date)
        self.reminders = []
        self.calendar.ensure_year(year)
        self.calendar[year][month].is_current_month = True
        self.calendar.get_day(year, month, day).is_current_day = True
        self.visible_year, self.visible_month_index = year, month

        for reminder in reminders or []:
            try:
                self.add_reminder(reminder)
            except ValueError as exc:
                logger.warning("skipping reminder id=%s: %s", reminder.id, exc)
        logger.info("calendar loaded year=%d reminders=%d", year, len(self.reminders))

    def reload(self, reminders: list[Reminder] | None) -> None:
        """Rebuild after the stored reminder collection changed (or was cleared)."""
        self.load(reminders)

    def reinitialize(self) -> None:
        """Discard all cursors and reproject every reminder from its anchor."""
        self.load(list(self.reminders))

    def set_first_weekday(self, first_weekday: int) -> None:
        if first_weekday == self.time_date.first_weekday:
            return
        self.time_date.first_weekday = first_weekday
        logger.info("first weekday changed to %d; reprojecting", first_weekday)
        self.reinitialize()

    # ------------------------------------------------------------------
    # Years
    # ------------------------------------------------------------------

    def ensure_year(self, year: int) -> list[Month]:
        """Materialize *year* (and any gap before it) and resume projections."""
        if self.calendar.ensure_year(year):
            self.resume_pending()
        return self.calendar[year]

    def resume_pending(self) -> int:
        inserted = 0
        for reminder in self.reminders:
            inserted += self.projector.resume(self.calendar, reminder)
        return inserted

    # ------------------------------------------------------------------
    # Reminders
    # ------------------------------------------------------------------

    def get_reminder(self, reminder_id: str) -> Reminder:
        for reminder in self.reminders:
            if reminder.id == reminder_id:
                return reminder
        raise KeyError(reminder_id)

    def add_reminder(self, reminder: Reminder) -> None:
        reminder.validate(self.time_date.days_in_month)
        if any(r.id == reminder.id for r in self.reminders):
            raise ValueError(f"Reminder '{reminder.id}' already exists")
        self.reminders.append(reminder)
        self.ensure_year(reminder.year)
        self._place(reminder)

    def update_reminder(self, reminder: Reminder) -> Reminder:
        """Replace an edited reminder, reprojecting it from its anchor.

        The edited reminder takes the old one's place in each day both
        projections share; days only the old projection reached are cleared.
        """
        old = self.get_reminder(reminder.id)
        reminder.validate(self.time_date.days_in_month)
        self.projector.reset(old.id)
        if old is reminder:
            # Edited in place: nothing distinguishes stale entries afterwards.
            self.calendar.remove_reminder(old.id)
        self.reminders[self.reminders.index(old)] = reminder
        self.ensure_year(reminder.year)
        self._place(reminder, replace_id=old.id)
        self.calendar.remove_reminder(old.id, keep=reminder)
        return old

    def remove_reminder(self, reminder_id: str) -> Reminder:
        reminder = self.get_reminder(reminder_id)
        self.reminders.remove(reminder)
        self.calendar.remove_reminder(reminder_id)
        self.projector.reset(reminder_id)
        return reminder

    def _place(self, reminder: Reminder, replace_id: str | None = None) -> None:
        if reminder.repeat is None:
            day = self.calendar.get_day(reminder.year, reminder.month, reminder.day)
            day.add_reminder(reminder, replace_id)
        else:
            self.projector.project(self.calendar, reminder, replace_id)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def current_day(self) -> Day:
        year, month, day = current_date(self.today)
        return self.calendar.get_day(year, month, day)

    def current_weekday_name(self) -> str:
        year, month, day = current_date(self.today)
        return self.time_date.weekday_name(self.time_date.weekday_of(year, month, day))

    def visible_month(self, year: int | None = None, month: int | None = None) -> VisibleMonth:
        if year is None:
            year = self.visible_year
        if month is None:
            month = self.visible_month_index
        prev_year, prev_month = shift_month(year, month, -1)
        next_year, next_month = shift_month(year, month, 1)
        current = self.ensure_year(year)[month]
        previous = self.ensure_year(prev_year)[prev_month]
        following = self.ensure_year(next_year)[next_month]

        lead = current.first_day_index
        self.visible_year, self.visible_month_index = year, month
        return VisibleMonth(
            year=year,
            month=month,
            name=current.name,
            date_string=current.date_string,
            days=current.days,
            previous_name=previous.name,
            previous_days=previous.days[-lead:] if lead > 0 else [],
            next_name=following.name,
            next_days=following.days[:GRID_CELLS - len(current.days) - lead],
        )

    def change_month(self, direction: int) -> VisibleMonth:
        year, month = shift_month(self.visible_year, self.visible_month_index, direction)
        return self.visible_month(year, month)

    def set_visible_year(self, direction: int) -> list[Month]:
        self.visible_year += direction
        return self.ensure_year(self.visible_year)
