from __future__ import annotations

import pytest

from assistant.pipeline.fallback import FALLBACK_DESCRIPTION, classify_fallback
from assistant.pipeline.schemas import CalendarAction, EmailAction, TaskAction, UnknownAction


@pytest.mark.parametrize("text,expected", [
    ("Schedule a sync with design", CalendarAction),
    ("meeting with Raj", CalendarAction),
    ("add a todo for groceries", TaskAction),
    ("email the landlord", EmailAction),
    ("check my gmail", EmailAction),
    ("what's the weather", UnknownAction),
])
def test_keyword_classification(text, expected) -> None:
  record = classify_fallback(text)
  assert isinstance(record, expected)
  assert record.description == FALLBACK_DESCRIPTION


def test_calendar_keywords_win_over_task_keywords() -> None:
  assert isinstance(classify_fallback("schedule a task reminder"), CalendarAction)


def test_title_is_first_fifty_characters() -> None:
  text = "email " + "x" * 80
  record = classify_fallback(text)
  assert record.title == text[:50]


def test_never_raises_on_odd_input() -> None:
  assert isinstance(classify_fallback(""), UnknownAction)
  assert isinstance(classify_fallback(None), UnknownAction)
