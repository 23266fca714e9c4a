from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from ..errors import UnrecognizedIntent
from .schemas import ACTION_KINDS, ACTION_RECORD_ADAPTER, ActionEnvelope, UnknownAction

_KIND_KEYS = ("kind", "action")


def _read_kind(raw: Dict[str, Any]) -> Optional[str]:
  for key in _KIND_KEYS:
    value = raw.get(key)
    if isinstance(value, str) and value.strip().lower() in ACTION_KINDS:
      return value.strip().lower()
  return None


def validate_action(raw: Any, where: str = "response") -> Any:
  """Turn one decoded object into its typed action variant."""
  if not isinstance(raw, dict):
    raise UnrecognizedIntent(f"{where} is not a JSON object")
  kind = _read_kind(raw)
  if kind is None:
    raise UnrecognizedIntent(f"Missing action in {where}")
  payload = {k: v for k, v in raw.items() if k not in _KIND_KEYS}
  payload["kind"] = kind
  try:
    return ACTION_RECORD_ADAPTER.validate_python(payload)
  except PydanticValidationError as exc:
    raise UnrecognizedIntent(f"{where} does not match the {kind} schema: {exc}") from exc


def _unusable_element(raw: Any, reason: UnrecognizedIntent) -> UnknownAction:
  title = raw.get("title") if isinstance(raw, dict) else None
  return UnknownAction(title=title if isinstance(title, str) else None,
                       description=f"Skipped: {reason}")


def validate_envelope(decoded: Any) -> ActionEnvelope:
  """Check decoded model output and wrap it in an envelope.

  A non-empty ``actions`` list wins over a top-level kind so the envelope
  never carries both. Elements of ``actions`` are checked independently: one
  without a usable kind becomes an ``UnknownAction`` that is reported as
  skipped, and its siblings still go through. Raises ``UnrecognizedIntent``
  when nothing in the response is usable.
  """
  if not isinstance(decoded, dict):
    raise UnrecognizedIntent("Response is not a JSON object")

  raw_actions = decoded.get("actions")
  if isinstance(raw_actions, list) and raw_actions:
    items: List[Any] = []
    usable = 0
    for index, raw in enumerate(raw_actions):
      try:
        items.append(validate_action(raw, where=f"actions[{index}]"))
        usable += 1
      except UnrecognizedIntent as exc:
        items.append(_unusable_element(raw, exc))
    if not usable:
      raise UnrecognizedIntent("No usable action in actions list")
    return ActionEnvelope(actions=items)

  if _read_kind(decoded) is not None:
    return ActionEnvelope(action=validate_action(decoded))

  raise UnrecognizedIntent("Missing action in response")
