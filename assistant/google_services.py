from __future__ import annotations

import base64
import hashlib
import json
import pathlib
from datetime import date, datetime, timedelta
from email.message import EmailMessage
from typing import Any, Callable, Dict, Optional

import requests
from google.auth.transport.requests import Request as GoogleRequest
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build

from .config import (
    DEFAULT_EVENT_MINUTES,
    DEFAULT_TASK_LIST,
    GOOGLE_SCOPES,
    Settings,
)
from .models import ActingIdentity
from .pipeline.anchor import TemporalAnchor
from .pipeline.dates import task_due_timestamp
from .pipeline.signature import enforce_signature, resolve_sender_name
from .utils import _log_debug

USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"

# -------------------------
# Token storage
# -------------------------
def _user_key(user_id: str) -> str:
  return hashlib.sha256(user_id.encode("utf-8")).hexdigest()


def _token_path(settings: Settings, user_id: str) -> pathlib.Path:
  return settings.google_token_dir / f"token_{_user_key(user_id)}.json"


def load_google_token(settings: Settings, user_id: str) -> Optional[Dict[str, Any]]:
  if not user_id:
    return None
  path = _token_path(settings, user_id)
  if not path.exists():
    return None
  try:
    with path.open("r", encoding="utf-8") as f:
      data = json.load(f)
  except (OSError, ValueError) as exc:
    _log_debug(f"[GOOGLE] token load failed user={user_id}: {exc}", enabled=settings.llm_debug)
    return None
  return data if isinstance(data, dict) else None


def save_google_token(settings: Settings, user_id: str, data: Dict[str, Any]) -> None:
  settings.google_token_dir.mkdir(parents=True, exist_ok=True)
  path = _token_path(settings, user_id)
  with path.open("w", encoding="utf-8") as f:
    json.dump(data, f, ensure_ascii=False)


def load_credentials(settings: Settings, user_id: str) -> Credentials:
  """Stored authorized-user credentials for ``user_id``, refreshed if expired."""
  token_data = load_google_token(settings, user_id)
  if not token_data:
    raise RuntimeError("Google OAuth token not found for this user.")
  token_data = dict(token_data)
  if settings.google_client_id:
    token_data.setdefault("client_id", settings.google_client_id)
  if settings.google_client_secret:
    token_data.setdefault("client_secret", settings.google_client_secret)

  creds = Credentials.from_authorized_user_info(token_data, GOOGLE_SCOPES)
  if creds.expired and creds.refresh_token:
    creds.refresh(GoogleRequest())
    save_google_token(settings, user_id, json.loads(creds.to_json()))
  return creds


def fetch_google_display_name(creds: Credentials) -> Optional[str]:
  access_token = getattr(creds, "token", None)
  if not access_token:
    return None
  try:
    response = requests.get(
        USERINFO_URL,
        headers={"Authorization": f"Bearer {access_token}"},
        timeout=5,
    )
  except requests.RequestException as exc:
    _log_debug(f"[GMAIL] userinfo lookup failed: {exc}")
    return None
  if not response.ok:
    return None
  try:
    payload = response.json()
  except ValueError:
    return None
  name = payload.get("name") if isinstance(payload, dict) else None
  return name.strip() if isinstance(name, str) and name.strip() else None


# -------------------------
# Wire formats
# -------------------------
def build_event_body(payload: Dict[str, Any], timezone_name: str) -> Dict[str, Any]:
  day = date.fromisoformat(payload["date"])
  body: Dict[str, Any] = {"summary": payload["title"]}
  time_value = payload.get("time")
  if time_value:
    hour, minute = (int(part) for part in time_value.split(":"))
    start_dt = datetime(day.year, day.month, day.day, hour, minute)
    minutes = payload.get("durationMinutes")
    if not isinstance(minutes, int) or minutes <= 0:
      minutes = DEFAULT_EVENT_MINUTES
    end_dt = start_dt + timedelta(minutes=minutes)
    body["start"] = {"dateTime": start_dt.isoformat(), "timeZone": timezone_name}
    body["end"] = {"dateTime": end_dt.isoformat(), "timeZone": timezone_name}
  else:
    body["start"] = {"date": day.isoformat()}
    body["end"] = {"date": (day + timedelta(days=1)).isoformat()}
  if payload.get("location"):
    body["location"] = payload["location"]
  if payload.get("description"):
    body["description"] = payload["description"]
  return body


def build_task_body(payload: Dict[str, Any], anchor: TemporalAnchor) -> Dict[str, Any]:
  body: Dict[str, Any] = {
      "title": payload["title"],
      "due": task_due_timestamp(payload.get("dueDate"), anchor),
      "status": payload.get("status") or "needsAction",
  }
  notes = payload.get("notes")
  if isinstance(notes, str) and notes.strip():
    body["notes"] = notes.strip()
  return body


def build_raw_email(to: str, subject: str, body: str) -> str:
  """RFC 2822 message, base64url without padding as Gmail expects."""
  msg = EmailMessage()
  msg["To"] = to
  msg["Subject"] = subject
  msg.set_content(body, charset="utf-8")
  return base64.urlsafe_b64encode(msg.as_bytes()).decode("ascii").rstrip("=")


# -------------------------
# Collaborators
# -------------------------
class GoogleWorkspace:
  """Calendar, Tasks and Gmail collaborators acting for one identity."""

  def __init__(self,
               settings: Settings,
               identity: ActingIdentity,
               service_builder: Callable[..., Any] = build,
               credentials: Optional[Credentials] = None):
    self.settings = settings
    self.identity = identity
    self._build = service_builder
    self._creds = credentials

  def _credentials(self) -> Credentials:
    if self._creds is None:
      self._creds = load_credentials(self.settings, self.identity.user_id)
    return self._creds

  def _service(self, name: str, version: str) -> Any:
    return self._build(name, version, credentials=self._credentials(),
                       cache_discovery=False)

  def create_event(self, payload: Dict[str, Any]) -> Dict[str, Any]:
    service = self._service("calendar", "v3")
    body = build_event_body(payload, self.settings.timezone)
    created = service.events().insert(calendarId=self.settings.google_calendar_id,
                                      body=body).execute()
    _log_debug(f"[GCAL] created event id={created.get('id')} title={payload.get('title')!r}",
               enabled=self.settings.llm_debug)
    return created

  def _task_list_id(self, service: Any) -> str:
    try:
      response = service.tasklists().list().execute()
    except Exception as exc:
      _log_debug(f"[TASKS] task list lookup failed, using default: {exc}",
                 enabled=self.settings.llm_debug)
      return DEFAULT_TASK_LIST
    items = response.get("items") or []
    if not items or not items[0].get("id"):
      return DEFAULT_TASK_LIST
    return items[0]["id"]

  def create_task(self, payload: Dict[str, Any], anchor: TemporalAnchor) -> Dict[str, Any]:
    service = self._service("tasks", "v1")
    task_list = self._task_list_id(service)
    body = build_task_body(payload, anchor)
    _log_debug(f"[TASKS] creating task list={task_list} body={json.dumps(body, ensure_ascii=False)}",
               enabled=self.settings.llm_debug)
    created = service.tasks().insert(tasklist=task_list, body=body).execute()
    if not created:
      raise RuntimeError("Failed to create task")
    return created

  def sender_name(self) -> str:
    if self.identity.name and self.identity.name.strip():
      return self.identity.name.strip()
    google_name = fetch_google_display_name(self._credentials())
    if google_name:
      return google_name
    name = resolve_sender_name(None, self.identity.email)
    _log_debug(f"[GMAIL] using email prefix as sender name: {name}",
               enabled=self.settings.llm_debug)
    return name

  def send_email(self, payload: Dict[str, Any]) -> Dict[str, Any]:
    service = self._service("gmail", "v1")
    sender = self.sender_name()
    # final safety net; idempotent when the body is already signed
    body = enforce_signature(payload["body"], sender)
    raw = build_raw_email(payload["recipient"], payload["subject"], body)
    sent = service.users().messages().send(userId="me", body={"raw": raw}).execute()
    if not sent:
      raise RuntimeError("Failed to send email")
    _log_debug(f"[GMAIL] sent message id={sent.get('id')} signed as {sender}",
               enabled=self.settings.llm_debug)
    return sent
