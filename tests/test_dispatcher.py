from __future__ import annotations

import asyncio

from assistant.pipeline.dispatcher import dispatch_action, dispatch_envelope
from assistant.pipeline.schemas import CalendarAction, EmailAction, UnknownAction
from assistant.pipeline.validator import validate_envelope

from .conftest import FakeCollaborators


def test_task_and_incomplete_email_are_reported_independently(identity, anchor, collaborators) -> None:
  envelope = validate_envelope({"actions": [
      {"action": "task", "title": "Buy milk"},
      {"action": "email", "recipient": ""},
  ]})
  results = asyncio.run(dispatch_envelope(envelope, identity, collaborators, anchor))

  assert [r.status for r in results] == ["success", "failed"]
  assert results[0].message == "Task created"
  assert results[1].error_type == "ValidationError"
  assert "recipient" in results[1].message and "body" in results[1].message
  assert [kind for kind, _ in collaborators.calls] == ["task"]
  assert collaborators.task_anchor is anchor


def test_collaborator_failure_does_not_stop_later_actions(identity, anchor) -> None:
  collaborators = FakeCollaborators(fail={"calendar": RuntimeError("quota exceeded")})
  envelope = validate_envelope({"actions": [
      {"action": "calendar", "title": "Standup", "date": "2025-06-11"},
      {"action": "task", "title": "Write notes"},
  ]})
  results = asyncio.run(dispatch_envelope(envelope, identity, collaborators, anchor))

  assert results[0].status == "failed"
  assert results[0].error_type == "DispatchError"
  assert "quota exceeded" in results[0].message
  assert results[1].status == "success"
  assert [kind for kind, _ in collaborators.calls] == ["calendar", "task"]


def test_calendar_without_date_is_a_validation_failure(identity, anchor, collaborators) -> None:
  result = asyncio.run(dispatch_action(CalendarAction(title="Lunch"), identity,
                                       collaborators, anchor))
  assert result.status == "failed"
  assert result.error_type == "ValidationError"
  assert collaborators.calls == []


def test_calendar_payload_carries_optional_fields(identity, anchor, collaborators) -> None:
  action = CalendarAction(title="Review", date="2025-06-12", time="14:00",
                          durationMinutes=30, location="Room 4")
  result = asyncio.run(dispatch_action(action, identity, collaborators, anchor))

  assert result.status == "success"
  assert result.message == "Calendar event created"
  assert result.data == {"id": "calendar-1"}
  kind, payload = collaborators.calls[0]
  assert payload["durationMinutes"] == 30
  assert payload["location"] == "Room 4"


def test_email_body_is_signed_with_acting_identity(identity, anchor, collaborators) -> None:
  action = EmailAction(recipient="raj@example.com", subject="Budget",
                       body="Numbers attached.\n\nBest regards,\nAI Assistant")
  result = asyncio.run(dispatch_action(action, identity, collaborators, anchor))

  expected = "Numbers attached.\n\nBest regards,\nPriya Shah"
  assert result.status == "success"
  assert collaborators.calls[0][1]["body"] == expected
  assert result.action["body"] == expected


def test_unknown_action_is_skipped(identity, anchor, collaborators) -> None:
  result = asyncio.run(dispatch_action(UnknownAction(description="weather question"),
                                       identity, collaborators, anchor))
  assert result.status == "skipped"
  assert result.message == "weather question"
  assert collaborators.calls == []


def test_dry_run_validates_without_calling_collaborators(identity, anchor, collaborators) -> None:
  envelope = validate_envelope({"actions": [
      {"action": "task", "title": "Buy milk"},
      {"action": "calendar", "title": "No date"},
  ]})
  results = asyncio.run(dispatch_envelope(envelope, identity, collaborators, anchor,
                                          dry_run=True))
  assert [r.status for r in results] == ["skipped", "failed"]
  assert collaborators.calls == []
