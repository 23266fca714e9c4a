from __future__ import annotations

import calendar
from datetime import date, datetime, time
from typing import Any, Optional
from zoneinfo import ZoneInfo

from dateutil.parser import ParserError
from dateutil.parser import parse as parse_datetime

from ..config import resolve_timezone
from ..utils import _log_debug
from .anchor import TemporalAnchor
from .schemas import CalendarAction, TaskAction

_END_OF_DAY = time(23, 59, 59)


def _yearless_default(anchor: TemporalAnchor) -> datetime:
  # A date written without a year must look "past" so the correction below
  # rolls it forward; a leap year keeps Feb 29 parseable.
  year = anchor.year - 1
  while not calendar.isleap(year):
    year -= 1
  return datetime(year, 1, 1)


def _with_year(value: date, year: int) -> date:
  last_day = calendar.monthrange(year, value.month)[1]
  return value.replace(year=year, day=min(value.day, last_day))


def parse_calendar_date(value: Any, anchor: TemporalAnchor) -> Optional[date]:
  if not isinstance(value, str):
    return None
  cleaned = value.strip()
  if not cleaned:
    return None
  try:
    return parse_datetime(cleaned, default=_yearless_default(anchor)).date()
  except (ParserError, ValueError, OverflowError):
    return None


def resolve_date(value: Any, anchor: TemporalAnchor) -> Optional[str]:
  """Normalize a model-supplied date to ``YYYY-MM-DD``.

  Years before the anchor year are moved to the anchor year, and to the
  following year when that still lands before today. Later years are never
  touched. Returns None when the value cannot be read as a date; callers
  treat that as "unspecified", not "today".
  """
  if isinstance(value, str) and value.strip().lower() in ("today", "tomorrow"):
    word = value.strip().lower()
    return (anchor.today if word == "today" else anchor.tomorrow).isoformat()
  parsed = parse_calendar_date(value, anchor)
  if parsed is None:
    _log_debug(f"[DATES] dropped unparseable date: {value!r}")
    return None
  if parsed.year >= anchor.year:
    return parsed.isoformat()

  corrected = _with_year(parsed, anchor.year)
  if corrected < anchor.today:
    corrected = _with_year(parsed, anchor.year + 1)
  _log_debug(f"[DATES] corrected past year: {value!r} -> {corrected.isoformat()}")
  return corrected.isoformat()


def resolve_action_dates(action: Any, anchor: TemporalAnchor) -> Any:
  """Return a copy of the action with its date-bearing field resolved."""
  if isinstance(action, CalendarAction) and action.date is not None:
    return action.model_copy(update={"date": resolve_date(action.date, anchor)})
  if isinstance(action, TaskAction) and action.due_date is not None:
    return action.model_copy(update={"due_date": resolve_date(action.due_date, anchor)})
  return action


def _end_of_day(day: date, timezone_name: str) -> str:
  tz = ZoneInfo(resolve_timezone(timezone_name))
  return datetime.combine(day, _END_OF_DAY, tzinfo=tz).isoformat()


def task_due_timestamp(value: Optional[str], anchor: TemporalAnchor) -> str:
  """RFC 3339 end-of-day timestamp for a task due date.

  Missing or unreadable values default to the end of today.
  """
  lowered = (value or "").strip().lower()
  if not lowered or lowered == "today":
    return _end_of_day(anchor.today, anchor.timezone)
  if lowered == "tomorrow":
    return _end_of_day(anchor.tomorrow, anchor.timezone)
  resolved = resolve_date(value, anchor)
  if resolved is None:
    return _end_of_day(anchor.today, anchor.timezone)
  return _end_of_day(date.fromisoformat(resolved), anchor.timezone)
