from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, List, Optional

from pydantic import BaseModel

from ..config import Settings
from ..errors import EmptyResponse, MalformedResponse, UnrecognizedIntent
from ..models import ActingIdentity, ActionResult
from ..utils import _log_debug, _preview
from .anchor import TemporalAnchor, compute_anchor
from .dates import resolve_action_dates
from .dispatcher import Collaborators, dispatch_envelope
from .fallback import classify_fallback
from .prompt import build_prompt
from .recoverer import recover_json
from .schemas import ActionEnvelope
from .validator import validate_envelope

logger = logging.getLogger(__name__)

CollaboratorFactory = Callable[[ActingIdentity], Collaborators]


class CommandOutcome(BaseModel):
  envelope: ActionEnvelope
  results: List[ActionResult]
  anchor: TemporalAnchor
  fallback_used: bool = False
  fallback_reason: Optional[str] = None

  @property
  def success(self) -> bool:
    if self.fallback_used:
      return False
    return all(result.status != "failed" for result in self.results)


async def interpret_command(text: str,
                            identity: ActingIdentity,
                            generate: Callable[[str], Any],
                            anchor: TemporalAnchor,
                            debug: bool = False) -> tuple:
  """Prompt -> generate -> recover -> validate -> resolve dates.

  Returns ``(envelope, fallback_reason)``. Any failure along the way is
  absorbed into a fallback record; the reason is None on the happy path.
  """
  prompt = build_prompt(text, identity.name or "User", anchor)
  try:
    raw_output = await generate(prompt)
    decoded = recover_json(raw_output)
    envelope = validate_envelope(decoded)
  except (EmptyResponse, MalformedResponse, UnrecognizedIntent) as exc:
    logger.warning("Model output unusable, using fallback: %s", exc)
    if isinstance(exc, MalformedResponse):
      _log_debug(f"[PIPELINE] malformed fragment: {exc.fragment!r}", enabled=debug)
    return ActionEnvelope(action=classify_fallback(text)), str(exc)
  except Exception as exc:
    logger.exception("Generation call failed, using fallback")
    return ActionEnvelope(action=classify_fallback(text)), f"Generation failed: {exc}"

  resolved = [resolve_action_dates(action, anchor) for action in envelope.items]
  if envelope.is_multi:
    return ActionEnvelope(actions=resolved), None
  return ActionEnvelope(action=resolved[0]), None


async def run_command(text: str,
                      identity: ActingIdentity,
                      settings: Settings,
                      *,
                      generate: Optional[Callable[[str], Any]] = None,
                      collaborators: Optional[Collaborators] = None,
                      collaborator_factory: Optional[CollaboratorFactory] = None,
                      dry_run: bool = False,
                      now: Optional[datetime] = None) -> CommandOutcome:
  """Full pipeline for one command.

  Raises ConfigurationError before any model call when no generation
  credentials are configured. Fallback records are returned but never
  dispatched.
  """
  settings.require_generation_credentials()
  if generate is None:
    from ..llm import build_generator
    generate = build_generator(settings)

  anchor = compute_anchor(settings.timezone, now=now)
  _log_debug(f"[PIPELINE] text={_preview(text)!r} user={identity.name or identity.email} "
             f"today={anchor.today.isoformat()}", enabled=settings.llm_debug)

  envelope, fallback_reason = await interpret_command(text, identity, generate, anchor,
                                                      debug=settings.llm_debug)
  if fallback_reason is not None:
    record = envelope.items[0]
    results = [ActionResult(
        kind=record.kind,
        status="skipped",
        message=record.description or "",
        action=record.to_payload(),
    )]
    return CommandOutcome(envelope=envelope,
                          results=results,
                          anchor=anchor,
                          fallback_used=True,
                          fallback_reason=fallback_reason)

  if collaborators is None:
    if collaborator_factory is None:
      from ..google_services import GoogleWorkspace
      collaborators = GoogleWorkspace(settings, identity)
    else:
      collaborators = collaborator_factory(identity)

  results = await dispatch_envelope(envelope, identity, collaborators, anchor,
                                    dry_run=dry_run)
  return CommandOutcome(envelope=envelope, results=results, anchor=anchor)
