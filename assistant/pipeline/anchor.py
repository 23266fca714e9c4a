from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional, Union
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict

from ..config import resolve_timezone


class TemporalAnchor(BaseModel):
  """Request-time "now" used for every relative and partial date."""
  model_config = ConfigDict(frozen=True)

  today: date
  year: int
  month: int
  day: int
  timezone: str = "UTC"

  @property
  def tomorrow(self) -> date:
    return self.today + timedelta(days=1)

  def next_weekday(self, weekday: int) -> date:
    """Next occurrence of ``weekday`` (0=Monday) strictly after today."""
    delta = (weekday - self.today.weekday()) % 7
    return self.today + timedelta(days=delta or 7)


def compute_anchor(timezone_name: Optional[str] = None,
                   now: Optional[Union[datetime, date]] = None) -> TemporalAnchor:
  """Compute the anchor for one request. Never cache the result."""
  tz_name = resolve_timezone(timezone_name)
  if now is None:
    current = datetime.now(ZoneInfo(tz_name)).date()
  elif isinstance(now, datetime):
    if now.tzinfo is not None:
      now = now.astimezone(ZoneInfo(tz_name))
    current = now.date()
  else:
    current = now
  return TemporalAnchor(
      today=current,
      year=current.year,
      month=current.month,
      day=current.day,
      timezone=tz_name,
  )
