from __future__ import annotations

from typing import Any, Tuple

from .schemas import CalendarAction, EmailAction, TaskAction, UnknownAction

FALLBACK_DESCRIPTION = "AI parsing failed. Please refine the input."
FALLBACK_TITLE_CHARS = 50

# Checked in order; first hit wins.
FALLBACK_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("calendar", ("meet", "schedule")),
    ("task", ("task", "todo")),
    ("email", ("email", "mail")),
)

_RECORD_TYPES = {
    "calendar": CalendarAction,
    "task": TaskAction,
    "email": EmailAction,
    "unknown": UnknownAction,
}


def guess_kind(text: str) -> str:
  lowered = (text or "").lower()
  for kind, keywords in FALLBACK_KEYWORDS:
    if any(keyword in lowered for keyword in keywords):
      return kind
  return "unknown"


def classify_fallback(text: Any) -> Any:
  """Degraded action record for when the model pipeline fails. Never raises."""
  raw = text if isinstance(text, str) else ""
  kind = guess_kind(raw)
  title = raw[:FALLBACK_TITLE_CHARS]
  record_type = _RECORD_TYPES.get(kind, UnknownAction)
  return record_type(title=title, description=FALLBACK_DESCRIPTION)
