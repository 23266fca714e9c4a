from __future__ import annotations

import os
import pathlib
import re
from typing import List, Optional, Tuple
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict

from .errors import ConfigurationError

LLM_DEBUG = os.getenv("LLM_DEBUG", "0") == "1"

HHMM_RE = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")

# -------------------------
# Generation backend
# -------------------------
DEFAULT_MODEL_CANDIDATES: Tuple[str, ...] = (
    "gemini-2.5-flash",
    "gemini-pro-latest",
    "gemini-flash-latest",
)
DEFAULT_MAX_COMPLETION_TOKENS = 2048
ALLOWED_REASONING_EFFORTS = {"low", "medium", "high"}
LLM_PROVIDERS = {"auto", "openai", "gemini"}

# -------------------------
# Google services
# -------------------------
GOOGLE_SCOPES = [
    "openid",
    "profile",
    "email",
    "https://www.googleapis.com/auth/calendar.events",
    "https://www.googleapis.com/auth/tasks",
    "https://www.googleapis.com/auth/gmail.send",
]
GOOGLE_CALENDAR_ID = os.getenv("GOOGLE_CALENDAR_ID", "primary")
DEFAULT_TASK_LIST = "@default"
DEFAULT_EVENT_MINUTES = 60

BASE_DIR = pathlib.Path(__file__).resolve().parent.parent
DEFAULT_TIMEZONE = "UTC"

# -------------------------
# HTTP surface
# -------------------------
API_BASE = os.getenv("API_BASE", "/api")
CORS_ALLOW_ORIGINS = os.getenv("CORS_ALLOW_ORIGINS", "")
cors_origins: List[str] = [
    origin.strip() for origin in CORS_ALLOW_ORIGINS.split(",") if origin.strip()
]
IDENTITY_USER_ID_HEADER = "X-Authenticated-User-Id"
IDENTITY_EMAIL_HEADER = "X-Authenticated-Email"
IDENTITY_NAME_HEADER = "X-Authenticated-Name"


def provider_for_model(model: str, override: str = "auto") -> str:
  provider = str(override or "auto").strip().lower()
  if provider in ("openai", "gemini"):
    return provider
  model_name = str(model or "").strip().lower()
  if model_name.startswith("gemini") or model_name.startswith("models/gemini"):
    return "gemini"
  return "openai"


def resolve_timezone(requested: Optional[str]) -> str:
  for candidate in (requested, DEFAULT_TIMEZONE):
    if not isinstance(candidate, str):
      continue
    cleaned = candidate.strip()
    if not cleaned:
      continue
    try:
      ZoneInfo(cleaned)
      return cleaned
    except Exception:
      continue
  return DEFAULT_TIMEZONE


def _split_csv(raw: Optional[str]) -> Tuple[str, ...]:
  if not isinstance(raw, str):
    return ()
  return tuple(part.strip() for part in raw.split(",") if part.strip())


def _env_str(name: str) -> Optional[str]:
  value = os.getenv(name, "").strip()
  return value or None


class Settings(BaseModel):
  """Process-wide configuration, read once and passed into the pipeline."""
  model_config = ConfigDict(frozen=True, protected_namespaces=())

  gemini_api_key: Optional[str] = None
  openai_api_key: Optional[str] = None
  model_candidates: Tuple[str, ...] = DEFAULT_MODEL_CANDIDATES
  max_completion_tokens: int = DEFAULT_MAX_COMPLETION_TOKENS
  openai_reasoning_effort: Optional[str] = None
  timezone: str = DEFAULT_TIMEZONE
  google_client_id: Optional[str] = None
  google_client_secret: Optional[str] = None
  google_token_dir: pathlib.Path = BASE_DIR / "google_tokens"
  google_calendar_id: str = GOOGLE_CALENDAR_ID
  llm_debug: bool = LLM_DEBUG
  llm_provider: str = "auto"

  @classmethod
  def from_env(cls) -> "Settings":
    candidates = _split_csv(os.getenv("ASSISTANT_MODELS")) or DEFAULT_MODEL_CANDIDATES
    try:
      max_tokens = int(os.getenv("ASSISTANT_MAX_COMPLETION_TOKENS",
                                 str(DEFAULT_MAX_COMPLETION_TOKENS)))
    except ValueError:
      max_tokens = DEFAULT_MAX_COMPLETION_TOKENS
    effort = (os.getenv("OPENAI_REASONING_EFFORT") or "").strip().lower()
    provider = (os.getenv("ASSISTANT_LLM_PROVIDER") or "auto").strip().lower()
    return cls(
        gemini_api_key=_env_str("GEMINI_API_KEY"),
        openai_api_key=_env_str("OPENAI_API_KEY"),
        model_candidates=candidates,
        max_completion_tokens=max_tokens,
        openai_reasoning_effort=effort if effort in ALLOWED_REASONING_EFFORTS else None,
        timezone=resolve_timezone(os.getenv("ASSISTANT_TIMEZONE")),
        google_client_id=_env_str("GOOGLE_CLIENT_ID"),
        google_client_secret=_env_str("GOOGLE_CLIENT_SECRET"),
        google_token_dir=pathlib.Path(
            os.getenv("GOOGLE_TOKEN_DIR", str(BASE_DIR / "google_tokens"))),
        google_calendar_id=GOOGLE_CALENDAR_ID,
        llm_debug=os.getenv("LLM_DEBUG", "0") == "1",
        llm_provider=provider if provider in LLM_PROVIDERS else "auto",
    )

  @property
  def tzinfo(self) -> ZoneInfo:
    return ZoneInfo(resolve_timezone(self.timezone))

  def api_key_for(self, model: str) -> Optional[str]:
    if provider_for_model(model, self.llm_provider) == "gemini":
      return self.gemini_api_key
    return self.openai_api_key

  def usable_models(self) -> List[str]:
    return [model for model in self.model_candidates if self.api_key_for(model)]

  def require_generation_credentials(self) -> None:
    if not self.model_candidates:
      raise ConfigurationError("No generation model is configured (ASSISTANT_MODELS).")
    if not self.usable_models():
      providers = sorted({provider_for_model(m, self.llm_provider) for m in self.model_candidates})
      names = ", ".join(
          "GEMINI_API_KEY" if p == "gemini" else "OPENAI_API_KEY" for p in providers)
      raise ConfigurationError(f"{names} is not set.")

  def is_google_configured(self) -> bool:
    return bool(self.google_client_id and self.google_client_secret)
