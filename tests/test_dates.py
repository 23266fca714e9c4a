from __future__ import annotations

from datetime import date

import pytest

from assistant.pipeline.anchor import compute_anchor
from assistant.pipeline.dates import resolve_action_dates, resolve_date, task_due_timestamp
from assistant.pipeline.schemas import CalendarAction, TaskAction


@pytest.mark.parametrize("value,expected", [
    ("2024-01-05", "2026-01-05"),
    ("2024-12-25", "2025-12-25"),
    ("2024-06-10", "2025-06-10"),
    ("2025-06-11", "2025-06-11"),
    ("2025-01-01", "2025-01-01"),
    ("2027-03-04", "2027-03-04"),
])
def test_past_years_roll_forward_and_later_years_stay(anchor, value, expected) -> None:
  assert resolve_date(value, anchor) == expected


def test_yearless_dates_are_placed_on_or_after_today(anchor) -> None:
  assert resolve_date("December 25", anchor) == "2025-12-25"
  assert resolve_date("January 25", anchor) == "2026-01-25"
  assert resolve_date("June 10", anchor) == "2025-06-10"


def test_non_iso_spellings_are_normalized(anchor) -> None:
  assert resolve_date("2025/07/04", anchor) == "2025-07-04"
  assert resolve_date("July 4, 2025", anchor) == "2025-07-04"


def test_relative_words_use_the_anchor(anchor) -> None:
  assert resolve_date("today", anchor) == "2025-06-10"
  assert resolve_date(" Tomorrow ", anchor) == "2025-06-11"


@pytest.mark.parametrize("value", [None, "", "   ", "whenever", "2025-02-30", 20250610])
def test_unreadable_values_are_unspecified(anchor, value) -> None:
  assert resolve_date(value, anchor) is None


def test_leap_day_clamps_in_non_leap_target_year() -> None:
  anchor = compute_anchor("UTC", now=date(2025, 1, 15))
  assert resolve_date("2024-02-29", anchor) == "2025-02-28"


def test_resolved_dates_are_never_before_today_when_corrected(anchor) -> None:
  for month in range(1, 13):
    resolved = resolve_date(f"2023-{month:02d}-15", anchor)
    assert date.fromisoformat(resolved) >= anchor.today


def test_action_dates_are_resolved_on_copies(anchor) -> None:
  event = CalendarAction(title="Review", date="2024-12-25")
  task = TaskAction(title="File report", dueDate="someday")

  assert resolve_action_dates(event, anchor).date == "2025-12-25"
  assert event.date == "2024-12-25"
  assert resolve_action_dates(task, anchor).due_date is None


def test_task_due_defaults_to_end_of_today(anchor) -> None:
  assert task_due_timestamp(None, anchor) == "2025-06-10T23:59:59+00:00"
  assert task_due_timestamp("today", anchor) == "2025-06-10T23:59:59+00:00"
  assert task_due_timestamp("whenever", anchor) == "2025-06-10T23:59:59+00:00"


def test_task_due_tomorrow_and_explicit_dates(anchor) -> None:
  assert task_due_timestamp("tomorrow", anchor) == "2025-06-11T23:59:59+00:00"
  assert task_due_timestamp("2024-01-05", anchor) == "2026-01-05T23:59:59+00:00"


def test_task_due_carries_anchor_timezone_offset() -> None:
  anchor = compute_anchor("Asia/Seoul", now=date(2025, 6, 10))
  assert task_due_timestamp("2025-06-12", anchor) == "2025-06-12T23:59:59+09:00"
