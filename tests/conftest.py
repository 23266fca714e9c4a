from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional, Tuple

import pytest

from assistant.config import Settings
from assistant.models import ActingIdentity
from assistant.pipeline.anchor import TemporalAnchor, compute_anchor


class FakeCollaborators:
  """Records every collaborator call; optionally fails one kind."""

  def __init__(self, fail: Optional[Dict[str, Exception]] = None):
    self.fail = fail or {}
    self.calls: List[Tuple[str, Dict[str, Any]]] = []

  def _record(self, kind: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    self.calls.append((kind, payload))
    if kind in self.fail:
      raise self.fail[kind]
    return {"id": f"{kind}-{len(self.calls)}"}

  def create_event(self, payload: Dict[str, Any]) -> Dict[str, Any]:
    return self._record("calendar", payload)

  def create_task(self, payload: Dict[str, Any], anchor: TemporalAnchor) -> Dict[str, Any]:
    self.task_anchor = anchor
    return self._record("task", payload)

  def send_email(self, payload: Dict[str, Any]) -> Dict[str, Any]:
    return self._record("email", payload)


class FakeGenerate:
  def __init__(self, output: Any = "", error: Optional[Exception] = None):
    self.output = output
    self.error = error
    self.prompts: List[str] = []

  async def __call__(self, prompt: str) -> str:
    self.prompts.append(prompt)
    if self.error is not None:
      raise self.error
    return self.output


@pytest.fixture
def anchor() -> TemporalAnchor:
  return compute_anchor("UTC", now=date(2025, 6, 10))


@pytest.fixture
def identity() -> ActingIdentity:
  return ActingIdentity(user_id="uid-1", email="priya.shah@example.com", name="Priya Shah")


@pytest.fixture
def settings(tmp_path) -> Settings:
  return Settings(gemini_api_key="test-key", google_token_dir=tmp_path / "tokens")


@pytest.fixture
def collaborators() -> FakeCollaborators:
  return FakeCollaborators()
