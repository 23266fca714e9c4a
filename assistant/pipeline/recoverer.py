from __future__ import annotations

import json
import re
from typing import Any

from ..errors import EmptyResponse, MalformedResponse

_FENCE_RE = re.compile(r"```[a-zA-Z0-9_-]*")


def strip_code_fences(text: str) -> str:
  return _FENCE_RE.sub("", text or "").strip()


def extract_json_fragment(text: str) -> str:
  """Slice from the first ``{`` to the last ``}``.

  Greedy on purpose: commentary before or after a single object is
  tolerated, two objects separated by prose are not.
  """
  cleaned = strip_code_fences(text)
  left = cleaned.find("{")
  right = cleaned.rfind("}")
  if left != -1 and right != -1 and right > left:
    return cleaned[left:right + 1]
  return cleaned


def recover_json(raw_output: Any) -> Any:
  """Decode the JSON payload buried in a raw model response."""
  if not isinstance(raw_output, str) or not raw_output.strip():
    raise EmptyResponse()
  fragment = extract_json_fragment(raw_output)
  if not fragment:
    raise EmptyResponse("Response contained only formatting")
  try:
    return json.loads(fragment)
  except (json.JSONDecodeError, ValueError) as exc:
    raise MalformedResponse(f"JSON parse failed: {exc}", fragment=fragment) from exc
