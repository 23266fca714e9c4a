from __future__ import annotations

from datetime import date, datetime, timezone

from assistant.pipeline.anchor import compute_anchor
from assistant.pipeline.prompt import build_prompt


def test_anchor_fields_come_from_the_same_day() -> None:
  anchor = compute_anchor("UTC", now=date(2025, 6, 10))
  assert (anchor.today, anchor.year, anchor.month, anchor.day) == (date(2025, 6, 10), 2025, 6, 10)
  assert anchor.tomorrow == date(2025, 6, 11)


def test_anchor_uses_configured_timezone() -> None:
  late_utc = datetime(2025, 6, 10, 23, 30, tzinfo=timezone.utc)
  assert compute_anchor("Asia/Seoul", now=late_utc).today == date(2025, 6, 11)
  assert compute_anchor("Not/AZone", now=late_utc).timezone == "UTC"


def test_next_weekday_is_strictly_after_today() -> None:
  anchor = compute_anchor("UTC", now=date(2025, 6, 10))  # Tuesday
  assert anchor.next_weekday(0) == date(2025, 6, 16)
  assert anchor.next_weekday(1) == date(2025, 6, 17)
  assert anchor.next_weekday(4) == date(2025, 6, 13)


def test_prompt_embeds_anchor_and_year_rule(anchor) -> None:
  prompt = build_prompt("schedule a meeting tomorrow at 5", "Priya Shah", anchor)
  assert "Today's date is: 2025-06-10" in prompt
  assert "Current year is: 2025" in prompt
  assert "Current month is: 6" in prompt
  assert "Current day is: 10" in prompt
  assert "NEVER return a year before 2025" in prompt
  assert '"tomorrow at 5pm" -> date: "2025-06-11"' in prompt
  assert '"next Monday" -> date: "2025-06-16"' in prompt
  assert '"January 25" -> date: "2025-01-25"' in prompt


def test_prompt_lists_schemas_and_single_choice_rule(anchor) -> None:
  prompt = build_prompt("email Raj about the budget", "Priya Shah", anchor)
  for field in ('"durationMinutes"', '"dueDate"', '"priority"', '"recipient"', '"subject"', '"body"'):
    assert field in prompt
  assert "Choose ONLY ONE action" in prompt
  assert "Do NOT include any signature or sign-off." in prompt
  assert 'User input: "email Raj about the budget"' in prompt


def test_prompt_leaves_user_text_tokens_alone(anchor) -> None:
  prompt = build_prompt('remind me about {YEAR} "planning"', "", anchor)
  assert 'User input: "remind me about {YEAR} \\"planning\\""' in prompt
  assert "Sender name (for context only, never write it into an email): User" in prompt
