from __future__ import annotations

import re
from typing import Any, Optional

from .config import LLM_DEBUG


def _log_debug(message: str, enabled: Optional[bool] = None) -> None:
  if enabled is None:
    enabled = LLM_DEBUG
  if enabled:
    print(message, flush=True)


def normalize_text(text: str) -> str:
  t = (text or "").strip()
  t = re.sub(r"\s+", " ", t)
  return t


def _clean_optional_str(value: Any) -> Optional[str]:
  if value is None:
    return None
  if not isinstance(value, str):
    value = str(value)
  cleaned = value.strip()
  return cleaned or None


def _preview(text: str, limit: int = 50) -> str:
  value = text or ""
  if len(value) <= limit:
    return value
  return value[:limit] + "..."
