from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import (AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter,
                      field_validator, model_validator)

from ..config import HHMM_RE

ActionKind = Literal["calendar", "task", "email", "unknown"]
ACTION_KINDS = ("calendar", "task", "email", "unknown")
Priority = Literal["low", "medium", "high"]


def _optional_text(value: Any) -> Optional[str]:
  if value is None or isinstance(value, bool):
    return None
  if isinstance(value, (int, float)):
    value = str(value)
  if not isinstance(value, str):
    return None
  cleaned = value.strip()
  return cleaned or None


def _optional_time(value: Any) -> Optional[str]:
  cleaned = _optional_text(value)
  if cleaned is None:
    return None
  # "17:00:00" -> "17:00"
  parts = cleaned.split(":")
  if len(parts) == 3:
    cleaned = ":".join(parts[:2])
  match = HHMM_RE.match(cleaned)
  if not match:
    return None
  return f"{int(match.group(1)):02d}:{match.group(2)}"


def _optional_minutes(value: Any) -> Optional[int]:
  if value is None or isinstance(value, bool):
    return None
  if isinstance(value, str):
    value = value.strip()
    if not value:
      return None
    try:
      value = float(value)
    except ValueError:
      return None
  if isinstance(value, (int, float)):
    minutes = int(value)
    return minutes if minutes >= 0 else None
  return None


class _ActionBase(BaseModel):
  model_config = ConfigDict(extra="ignore", populate_by_name=True)

  title: Optional[str] = None
  description: Optional[str] = None

  @field_validator("title", "description", mode="before")
  @classmethod
  def _clean_common(cls, value: Any) -> Optional[str]:
    return _optional_text(value)

  def to_payload(self) -> Dict[str, Any]:
    return self.model_dump(by_alias=True, exclude_none=True)


class CalendarAction(_ActionBase):
  kind: Literal["calendar"] = "calendar"
  date: Optional[str] = None
  time: Optional[str] = None
  duration_minutes: Optional[int] = Field(
      default=None,
      validation_alias=AliasChoices("durationMinutes", "duration_minutes", "duration"),
      serialization_alias="durationMinutes",
  )
  location: Optional[str] = None

  @field_validator("date", "location", mode="before")
  @classmethod
  def _clean_text(cls, value: Any) -> Optional[str]:
    return _optional_text(value)

  @field_validator("time", mode="before")
  @classmethod
  def _clean_time(cls, value: Any) -> Optional[str]:
    return _optional_time(value)

  @field_validator("duration_minutes", mode="before")
  @classmethod
  def _clean_minutes(cls, value: Any) -> Optional[int]:
    return _optional_minutes(value)


class TaskAction(_ActionBase):
  kind: Literal["task"] = "task"
  due_date: Optional[str] = Field(
      default=None,
      validation_alias=AliasChoices("dueDate", "due_date", "date"),
      serialization_alias="dueDate",
  )
  priority: Optional[Priority] = None

  @field_validator("due_date", mode="before")
  @classmethod
  def _clean_text(cls, value: Any) -> Optional[str]:
    return _optional_text(value)

  @field_validator("priority", mode="before")
  @classmethod
  def _clean_priority(cls, value: Any) -> Optional[str]:
    cleaned = _optional_text(value)
    if cleaned is None:
      return None
    lowered = cleaned.lower()
    return lowered if lowered in ("low", "medium", "high") else None


class EmailAction(_ActionBase):
  kind: Literal["email"] = "email"
  recipient: Optional[str] = None
  subject: Optional[str] = None
  body: Optional[str] = None

  @field_validator("recipient", "subject", mode="before")
  @classmethod
  def _clean_text(cls, value: Any) -> Optional[str]:
    return _optional_text(value)

  @field_validator("body", mode="before")
  @classmethod
  def _clean_body(cls, value: Any) -> Optional[str]:
    if not isinstance(value, str) or not value.strip():
      return None
    return value.strip()


class UnknownAction(_ActionBase):
  kind: Literal["unknown"] = "unknown"


ActionRecord = Annotated[
    Union[CalendarAction, TaskAction, EmailAction, UnknownAction],
    Field(discriminator="kind"),
]
ACTION_RECORD_ADAPTER: TypeAdapter = TypeAdapter(ActionRecord)


class ActionEnvelope(BaseModel):
  """One action, or an ordered list of actions. Never both."""
  model_config = ConfigDict(extra="forbid")

  action: Optional[ActionRecord] = None
  actions: Optional[List[ActionRecord]] = None

  @model_validator(mode="after")
  def _exactly_one_form(self) -> "ActionEnvelope":
    if (self.action is None) == (self.actions is None):
      raise ValueError("envelope carries exactly one of action / actions")
    if self.actions is not None and not self.actions:
      raise ValueError("actions must not be empty")
    return self

  @property
  def is_multi(self) -> bool:
    return self.actions is not None

  @property
  def items(self) -> List[Union[CalendarAction, TaskAction, EmailAction, UnknownAction]]:
    if self.actions is not None:
      return list(self.actions)
    return [self.action]

  def to_payload(self) -> Dict[str, Any]:
    if self.actions is not None:
      return {"actions": [item.to_payload() for item in self.actions]}
    return self.action.to_payload()
