from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from .config import (
    API_BASE,
    IDENTITY_EMAIL_HEADER,
    IDENTITY_NAME_HEADER,
    IDENTITY_USER_ID_HEADER,
    Settings,
)
from .errors import ConfigurationError
from .models import ActingIdentity, CommandRequest, CommandResponse
from .pipeline import CommandOutcome, run_command
from .utils import _clean_optional_str, _log_debug, _preview, normalize_text

router = APIRouter()
logger = logging.getLogger(__name__)


def get_settings(request: Request) -> Settings:
  settings = getattr(request.app.state, "settings", None)
  if not isinstance(settings, Settings):
    settings = Settings.from_env()
    request.app.state.settings = settings
  return settings


def get_acting_identity(request: Request) -> ActingIdentity:
  """Identity verified by the fronting auth layer."""
  identity = getattr(request.state, "identity", None)
  if isinstance(identity, ActingIdentity):
    return identity
  user_id = _clean_optional_str(request.headers.get(IDENTITY_USER_ID_HEADER))
  email = _clean_optional_str(request.headers.get(IDENTITY_EMAIL_HEADER))
  if not user_id and not email:
    raise HTTPException(status_code=401, detail="Authentication is required.")
  return ActingIdentity(
      user_id=user_id or email,
      email=email,
      name=_clean_optional_str(request.headers.get(IDENTITY_NAME_HEADER)),
  )


def _outcome_message(outcome: CommandOutcome) -> str:
  if outcome.fallback_used:
    return outcome.results[0].message if outcome.results else "AI parsing failed."
  if len(outcome.results) == 1:
    return outcome.results[0].message
  succeeded = sum(1 for r in outcome.results if r.status == "success")
  failed = sum(1 for r in outcome.results if r.status == "failed")
  return f"Processed {len(outcome.results)} actions ({succeeded} succeeded, {failed} failed)"


def build_command_response(outcome: CommandOutcome) -> Dict[str, Any]:
  results: List[Dict[str, Any]] = [r.model_dump() for r in outcome.results]
  response = CommandResponse(
      success=outcome.success,
      message=_outcome_message(outcome),
      fallback_used=outcome.fallback_used,
  )
  if outcome.envelope.is_multi:
    response.results = results
  else:
    response.data = results[0] if results else None
  return response.model_dump(exclude_none=True)


@router.post(f"{API_BASE}/command")
async def run_command_endpoint(body: CommandRequest, request: Request):
  text = normalize_text(body.text or "")
  if not text:
    return JSONResponse(status_code=400,
                        content={"success": False, "message": "Text input is required"})
  identity = get_acting_identity(request)
  settings = get_settings(request)
  _log_debug(f"[API] command user={identity.user_id} text={_preview(text)!r}",
             enabled=settings.llm_debug)
  try:
    outcome = await run_command(
        text,
        identity,
        settings,
        generate=getattr(request.app.state, "generate", None),
        collaborator_factory=getattr(request.app.state, "collaborator_factory", None),
        dry_run=bool(body.dry_run),
    )
  except ConfigurationError as exc:
    logger.error("Command rejected, configuration error: %s", exc)
    return JSONResponse(status_code=500, content={"success": False, "message": str(exc)})
  except Exception as exc:
    logger.exception("Command pipeline error")
    return JSONResponse(status_code=500,
                        content={"success": False, "message": f"Command failed: {exc}"})
  return build_command_response(outcome)


@router.get(f"{API_BASE}/health")
def health(request: Request):
  settings = get_settings(request)
  return {
      "ok": True,
      "generation_configured": bool(settings.usable_models()),
      "models": settings.usable_models(),
      "google_configured": settings.is_google_configured(),
      "timezone": settings.timezone,
  }
