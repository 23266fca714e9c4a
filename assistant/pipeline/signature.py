from __future__ import annotations

import re
from typing import Optional

CANONICAL_CLOSING = "Best regards,"

CLOSING_PHRASES = (
    "best regards,",
    "regards,",
    "sincerely,",
    "thanks,",
    "thank you,",
    "cheers,",
    "warm regards,",
    "kind regards,",
)

_CLOSING_RE = re.compile(
    "|".join(re.escape(phrase) for phrase in CLOSING_PHRASES), re.IGNORECASE)


def strip_signature(body: str) -> str:
  """Drop everything from the first recognized sign-off to the end."""
  text = body or ""
  match = _CLOSING_RE.search(text)
  if match is None:
    return text.rstrip()
  return text[:match.start()].rstrip()


def append_signature(body: str, sender_name: str) -> str:
  return f"{body}\n\n{CANONICAL_CLOSING}\n{sender_name}"


def enforce_signature(body: str, sender_name: str) -> str:
  """Replace any model-written sign-off with the sender's real one."""
  return append_signature(strip_signature(body), sender_name)


def resolve_sender_name(display_name: Optional[str],
                        email: Optional[str] = None) -> str:
  if isinstance(display_name, str) and display_name.strip():
    return display_name.strip()
  if isinstance(email, str) and "@" in email:
    local_part = email.split("@", 1)[0].strip()
    if local_part:
      return local_part
  return "User"
