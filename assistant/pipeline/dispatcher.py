from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Protocol

from ..errors import DispatchError, ValidationError
from ..models import ActingIdentity, ActionResult
from .anchor import TemporalAnchor
from .schemas import (ActionEnvelope, CalendarAction, EmailAction, TaskAction,
                      UnknownAction)
from .signature import enforce_signature, resolve_sender_name

logger = logging.getLogger(__name__)


class Collaborators(Protocol):
  def create_event(self, payload: Dict[str, Any]) -> Dict[str, Any]:
    ...

  def create_task(self, payload: Dict[str, Any], anchor: TemporalAnchor) -> Dict[str, Any]:
    ...

  def send_email(self, payload: Dict[str, Any]) -> Dict[str, Any]:
    ...


def _require(action: Any, fields: Dict[str, Optional[str]]) -> None:
  missing = [name for name, value in fields.items()
             if not isinstance(value, str) or not value.strip()]
  if missing:
    raise ValidationError(action.kind, missing)


def calendar_payload(action: CalendarAction) -> Dict[str, Any]:
  _require(action, {"title": action.title, "date": action.date})
  return {
      "title": action.title,
      "date": action.date,
      "time": action.time,
      "durationMinutes": action.duration_minutes,
      "location": action.location,
      "description": action.description,
  }


def task_payload(action: TaskAction) -> Dict[str, Any]:
  _require(action, {"title": action.title})
  return {
      "title": action.title,
      "dueDate": action.due_date,
      "notes": action.description,
      "status": "needsAction",
  }


def email_payload(action: EmailAction, identity: ActingIdentity) -> Dict[str, Any]:
  _require(action, {
      "recipient": action.recipient,
      "subject": action.subject,
      "body": action.body,
  })
  sender = resolve_sender_name(identity.name, identity.email)
  return {
      "recipient": action.recipient,
      "subject": action.subject,
      "body": enforce_signature(action.body, sender),
  }


def _result(action: Any, status: str, message: str,
            error_type: Optional[str] = None,
            data: Optional[Dict[str, Any]] = None) -> ActionResult:
  return ActionResult(
      kind=action.kind,
      status=status,
      error_type=error_type,
      message=message,
      action=action.to_payload(),
      data=data,
  )


async def dispatch_action(action: Any,
                          identity: ActingIdentity,
                          collaborators: Collaborators,
                          anchor: TemporalAnchor,
                          dry_run: bool = False) -> ActionResult:
  """Send one normalized action to its collaborator and report the outcome.

  Missing fields come back as a ValidationError result, collaborator
  failures as a DispatchError result. Nothing is raised or retried.
  """
  if isinstance(action, UnknownAction):
    return _result(action, "skipped",
                   action.description or "Request was not recognized as an action.")
  try:
    if isinstance(action, CalendarAction):
      payload = calendar_payload(action)
      call = collaborators.create_event
      args: tuple = (payload,)
      done = "Calendar event created"
    elif isinstance(action, TaskAction):
      payload = task_payload(action)
      call = collaborators.create_task
      args = (payload, anchor)
      done = "Task created"
    elif isinstance(action, EmailAction):
      payload = email_payload(action, identity)
      call = collaborators.send_email
      args = (payload,)
      done = "Email sent"
    else:
      raise ValidationError(getattr(action, "kind", "unknown"), [],
                            f"Unsupported action type: {type(action).__name__}")
  except ValidationError as exc:
    return _result(action, "failed", str(exc), error_type="ValidationError")

  if action.kind == "email":
    action = action.model_copy(update={"body": payload["body"]})
  if dry_run:
    return _result(action, "skipped", f"Dry run: {done.lower()} skipped")

  try:
    data = await asyncio.to_thread(call, *args)
  except Exception as exc:
    logger.exception("%s dispatch failed", action.kind)
    error = DispatchError(action.kind, f"{action.kind} dispatch failed: {exc}", cause=exc)
    return _result(action, "failed", str(error), error_type="DispatchError")
  return _result(action, "success", done,
                 data=data if isinstance(data, dict) else {"result": data})


async def dispatch_envelope(envelope: ActionEnvelope,
                            identity: ActingIdentity,
                            collaborators: Collaborators,
                            anchor: TemporalAnchor,
                            dry_run: bool = False) -> List[ActionResult]:
  """Dispatch every action in order; one failure never stops the rest."""
  results: List[ActionResult] = []
  for action in envelope.items:
    results.append(await dispatch_action(action, identity, collaborators,
                                         anchor, dry_run=dry_run))
  return results
