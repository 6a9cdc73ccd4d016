"""HTTP API for the dashboard calendar widget.

Serves month views and day cells of the reminder calendar and accepts
reminder edits.  All calendar state lives in one in-process
``CalendarManager``; requests are serialized because a projection run must
never be entered twice at the same time.
"""

from __future__ import annotations

import logging
import os
import secrets
import threading
import time

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Header, Path, Request, Response
from pydantic import BaseModel, Field

import reminder_storage
from calendar_grid import CalendarManager, Day
from reminder import Reminder, ReminderRange, RepeatRule, range_text, repeat_tooltip
from time_date import MONDAY_FIRST, TimeDateService

load_dotenv()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

API_KEY = os.environ.get("CALENDAR_API_KEY", "")
FIRST_WEEKDAY = int(os.environ.get("CALENDAR_FIRST_WEEKDAY", MONDAY_FIRST))

# Years outside this window are never materialized.
MIN_YEAR = 1900
MAX_YEAR = 2200

app = FastAPI(title="Reminder Calendar API")

_manager: CalendarManager | None = None
_lock = threading.Lock()


@app.middleware("http")
async def logging_middleware(request: Request, call_next) -> Response:
    start = time.monotonic()
    response = await call_next(request)
    duration_ms = round((time.monotonic() - start) * 1000, 1)

    extra = {
        "method": request.method,
        "path": request.url.path,
        "status_code": response.status_code,
        "duration_ms": duration_ms,
    }

    trace_header = request.headers.get("x-cloud-trace-context")
    if trace_header:
        extra["trace"] = trace_header.split("/")[0]

    logger.info("request %s %s %d %.1fms", extra["method"], extra["path"],
                extra["status_code"], duration_ms, extra=extra)
    return response


# ---------------------------------------------------------------------------
# Auth and state helpers
# ---------------------------------------------------------------------------

def _verify_api_key(authorization: str = Header(...)) -> None:
    if not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing Bearer token")
    token = authorization[len("Bearer "):]
    if not API_KEY or not secrets.compare_digest(token, API_KEY):
        raise HTTPException(status_code=401, detail="Invalid API key")


def _get_manager() -> CalendarManager:
    """Return the calendar manager, loading reminders on first use."""
    global _manager
    if _manager is None:
        manager = CalendarManager(TimeDateService(first_weekday=FIRST_WEEKDAY))
        manager.load(reminder_storage.load_reminders())
        _manager = manager
        _persist_cursors(manager)
    return _manager


def _persist_cursors(manager: CalendarManager) -> None:
    changed = manager.cursors.pop_dirty()
    if changed:
        reminder_storage.save_cursors(changed)


def _reminder_payload(manager: CalendarManager, reminder: Reminder) -> dict:
    cursor = manager.cursors.get(reminder.id)
    payload = {
        **reminder.to_dict(),
        "range_text": range_text(reminder.range, manager.time_date),
        "next_repeat": cursor.to_dict() if cursor is not None else None,
    }
    if reminder.repeat is not None:
        payload["repeat_tooltip"] = repeat_tooltip(reminder.repeat, manager.time_date)
    return payload


def _day_payload(day: Day, *, with_reminders: bool = True) -> dict:
    d: dict = {
        "id": day.id,
        "year": day.year,
        "month": day.month,
        "day": day.day,
        "date_string": day.date_string,
        "is_current_day": day.is_current_day,
        "reminder_count": len(day.reminders),
    }
    if with_reminders:
        d["reminders"] = [
            {"id": r.id, "text": r.text, "color": r.color} for r in day.reminders
        ]
    return d


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class RangeRequest(BaseModel):
    start: str | None = None
    end: str | None = None


class RepeatRequest(BaseModel):
    type: str
    gap: int = 1
    gap_unit: str = "days"
    count: int = 0
    weekdays: list[bool] | None = None
    # Defaults to the calendar's current first weekday.
    first_weekday: int | None = None


class ReminderRequest(BaseModel):
    year: int = Field(ge=MIN_YEAR, le=MAX_YEAR)
    month: int
    day: int
    text: str = ""
    color: str | None = None
    range: RangeRequest | None = None
    repeat: RepeatRequest | None = None

    def to_reminder(self, first_weekday: int, reminder_id: str | None = None) -> Reminder:
        repeat = None
        if self.repeat:
            fields = self.repeat.model_dump()
            if fields["first_weekday"] is None:
                fields["first_weekday"] = first_weekday
            repeat = RepeatRule(**fields)
        reminder = Reminder(
            year=self.year,
            month=self.month,
            day=self.day,
            text=self.text,
            color=self.color,
            range=ReminderRange(**self.range.model_dump()) if self.range else ReminderRange(),
            repeat=repeat,
        )
        if reminder_id:
            reminder.id = reminder_id
        return reminder


class FirstWeekdayRequest(BaseModel):
    first_weekday: int


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@app.get("/_healthz")
@app.get("/healthz")
def healthz():
    return {"ok": True}


# ---------------------------------------------------------------------------
# Calendar views
# ---------------------------------------------------------------------------

@app.get("/calendar/today", dependencies=[Depends(_verify_api_key)])
def get_today():
    with _lock:
        manager = _get_manager()
        day = manager.current_day()
        return {
            "day": _day_payload(day),
            "weekday_name": manager.current_weekday_name(),
        }


@app.get("/calendar/{year}", dependencies=[Depends(_verify_api_key)])
def get_year(year: int = Path(ge=MIN_YEAR, le=MAX_YEAR)):
    with _lock:
        manager = _get_manager()
        months = manager.ensure_year(year)
        _persist_cursors(manager)
        return {
            "year": year,
            "months": [
                {"month": m.month, "name": m.name, "is_current_month": m.is_current_month}
                for m in months
            ],
        }


@app.get("/calendar/{year}/{month}", dependencies=[Depends(_verify_api_key)])
def get_month(year: int = Path(ge=MIN_YEAR, le=MAX_YEAR), month: int = Path(ge=0, le=11)):
    with _lock:
        manager = _get_manager()
        view = manager.visible_month(year, month)
        _persist_cursors(manager)
        return {
            "year": view.year,
            "month": view.month,
            "name": view.name,
            "date_string": view.date_string,
            "weekdays": manager.time_date.weekday_names("short"),
            "previous": {
                "name": view.previous_name,
                "days": [_day_payload(d, with_reminders=False) for d in view.previous_days],
            },
            "current": {"days": [_day_payload(d) for d in view.days]},
            "next": {
                "name": view.next_name,
                "days": [_day_payload(d, with_reminders=False) for d in view.next_days],
            },
        }


@app.get("/days/{year}/{month}/{day}", dependencies=[Depends(_verify_api_key)])
def get_day(day: int, year: int = Path(ge=MIN_YEAR, le=MAX_YEAR), month: int = Path(ge=0, le=11)):
    with _lock:
        manager = _get_manager()
        manager.ensure_year(year)
        _persist_cursors(manager)
        if not 1 <= day <= manager.time_date.days_in_month(year, month):
            raise HTTPException(status_code=404, detail="Day not found")
        cell = manager.calendar.get_day(year, month, day)
        payload = _day_payload(cell, with_reminders=False)
        payload["reminders"] = [_reminder_payload(manager, r) for r in cell.reminders]
        return {"day": payload}


# ---------------------------------------------------------------------------
# Reminders
# ---------------------------------------------------------------------------

@app.get("/reminders/{reminder_id}", dependencies=[Depends(_verify_api_key)])
def get_reminder(reminder_id: str):
    with _lock:
        manager = _get_manager()
        try:
            reminder = manager.get_reminder(reminder_id)
        except KeyError:
            raise HTTPException(status_code=404, detail="Reminder not found")
        return {"reminder": _reminder_payload(manager, reminder)}


@app.post("/reminders", dependencies=[Depends(_verify_api_key)])
def create_reminder(body: ReminderRequest):
    with _lock:
        manager = _get_manager()
        reminder = body.to_reminder(manager.time_date.first_weekday)
        try:
            manager.add_reminder(reminder)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        reminder_storage.save_reminder(reminder)
        _persist_cursors(manager)
        logger.info("create_reminder id=%s repeat=%s", reminder.id,
                    reminder.repeat.type if reminder.repeat else None)
        return {"reminder": _reminder_payload(manager, reminder)}


@app.put("/reminders/{reminder_id}", dependencies=[Depends(_verify_api_key)])
def update_reminder(reminder_id: str, body: ReminderRequest):
    with _lock:
        manager = _get_manager()
        reminder = body.to_reminder(manager.time_date.first_weekday, reminder_id)
        try:
            manager.update_reminder(reminder)
        except KeyError:
            raise HTTPException(status_code=404, detail="Reminder not found")
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        reminder_storage.save_reminder(reminder)
        _persist_cursors(manager)
        logger.info("update_reminder id=%s", reminder_id)
        return {"reminder": _reminder_payload(manager, reminder)}


@app.delete("/reminders/{reminder_id}", dependencies=[Depends(_verify_api_key)])
def delete_reminder(reminder_id: str):
    with _lock:
        manager = _get_manager()
        try:
            manager.remove_reminder(reminder_id)
        except KeyError:
            raise HTTPException(status_code=404, detail="Reminder not found")
        reminder_storage.delete_reminder(reminder_id)
        _persist_cursors(manager)
        logger.info("delete_reminder id=%s", reminder_id)
        return {"ok": True}


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@app.put("/settings/first-weekday", dependencies=[Depends(_verify_api_key)])
def set_first_weekday(body: FirstWeekdayRequest):
    if body.first_weekday not in (0, 1):
        raise HTTPException(status_code=400, detail="first_weekday must be 0 or 1")
    with _lock:
        manager = _get_manager()
        manager.set_first_weekday(body.first_weekday)
        _persist_cursors(manager)
        logger.info("set_first_weekday first_weekday=%d", body.first_weekday)
        return {"first_weekday": body.first_weekday}
