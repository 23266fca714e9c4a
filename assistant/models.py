from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class ActingIdentity(BaseModel):
  """Verified caller. Supplied by the auth layer, never by model output."""
  model_config = ConfigDict(frozen=True)

  user_id: str
  email: Optional[str] = None
  name: Optional[str] = None


class CommandRequest(BaseModel):
  text: Optional[str] = None
  dry_run: Optional[bool] = False


class ActionResult(BaseModel):
  kind: str
  status: str  # "success" | "failed" | "skipped"
  error_type: Optional[str] = None  # "ValidationError" | "DispatchError"
  message: str = ""
  action: Dict[str, Any]
  data: Optional[Dict[str, Any]] = None


class CommandResponse(BaseModel):
  success: bool
  message: str
  fallback_used: bool = False
  data: Optional[Dict[str, Any]] = None
  results: Optional[List[Dict[str, Any]]] = None
