from __future__ import annotations

from typing import List, Optional, Sequence


class AssistantError(Exception):
  """Base class for every error raised by the command pipeline."""


class ConfigurationError(AssistantError):
  """A required credential is missing. Raised before any model call."""


class EmptyResponse(AssistantError):
  """The generation backend returned no text."""

  def __init__(self, message: str = "Empty response from generation backend"):
    super().__init__(message)


class MalformedResponse(AssistantError):
  """The generation backend returned text that does not decode as JSON."""

  def __init__(self, message: str, fragment: str = ""):
    super().__init__(message)
    self.fragment = fragment


class UnrecognizedIntent(AssistantError):
  """Decoded output carries neither a known action kind nor an actions list."""


class ValidationError(AssistantError):
  """An action is missing fields its collaborator cannot do without.

  Reported per action. The intent was understood, so this never triggers
  the fallback classifier.
  """

  def __init__(self, kind: str, missing: Sequence[str],
               message: Optional[str] = None):
    self.kind = kind
    self.missing: List[str] = list(missing)
    if message is None:
      message = f"{kind} action is missing required field(s): {', '.join(self.missing)}"
    super().__init__(message)


class DispatchError(AssistantError):
  """The external collaborator for an action failed (auth, network, quota)."""

  def __init__(self, kind: str, message: str,
               cause: Optional[BaseException] = None):
    super().__init__(message)
    self.kind = kind
    self.cause = cause
