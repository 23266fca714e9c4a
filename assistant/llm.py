from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Tuple

from google import genai
from openai import AsyncOpenAI

from .config import Settings, provider_for_model
from .errors import ConfigurationError
from .utils import _log_debug

GenerateFn = Callable[[str], Awaitable[str]]

_gemini_clients: Dict[str, Any] = {}
_openai_clients: Dict[str, AsyncOpenAI] = {}


def _print_raw_output(*,
                      provider: str,
                      model: str,
                      raw_output: str,
                      enabled: bool) -> None:
  if not enabled:
    return
  print(f"[LLM RAW] provider={provider} model={model}", flush=True)
  print(raw_output if raw_output else "(empty)", flush=True)
  print("[LLM RAW END]", flush=True)


def _extract_message_text(content: Any) -> str:
  if isinstance(content, str):
    return content.strip()
  if isinstance(content, list):
    chunks = []
    for item in content:
      if isinstance(item, dict):
        text_val = item.get("text")
        if isinstance(text_val, str) and text_val.strip():
          chunks.append(text_val.strip())
      elif isinstance(item, str) and item.strip():
        chunks.append(item.strip())
    return " ".join(chunks).strip()
  return ""


def _canonical_gemini_model(model: str) -> str:
  model_name = str(model or "").strip()
  if not model_name:
    return "models/gemini-flash-latest"
  if model_name.startswith("models/"):
    return model_name
  return f"models/{model_name}"


def _gemini_text_from_response(response: Any) -> str:
  text = getattr(response, "text", None)
  if isinstance(text, str) and text.strip():
    return text.strip()
  candidates = getattr(response, "candidates", None)
  if not isinstance(candidates, list):
    return ""
  chunks = []
  for candidate in candidates:
    content = getattr(candidate, "content", None)
    parts = getattr(content, "parts", None) if content is not None else None
    if not isinstance(parts, list):
      continue
    for part in parts:
      text_val = getattr(part, "text", None)
      if isinstance(text_val, str) and text_val.strip():
        chunks.append(text_val.strip())
  return " ".join(chunks).strip()


def _gemini_client(api_key: str) -> Any:
  client = _gemini_clients.get(api_key)
  if client is None:
    client = genai.Client(api_key=api_key)
    _gemini_clients[api_key] = client
  return client


def _openai_client(api_key: str) -> AsyncOpenAI:
  client = _openai_clients.get(api_key)
  if client is None:
    client = AsyncOpenAI(api_key=api_key)
    _openai_clients[api_key] = client
  return client


def _build_client(model: str, settings: Settings) -> Tuple[str, Any]:
  provider = provider_for_model(model, settings.llm_provider)
  api_key = settings.api_key_for(model)
  if not api_key:
    raise ConfigurationError(
        f"{'GEMINI_API_KEY' if provider == 'gemini' else 'OPENAI_API_KEY'} is not set.")
  if provider == "gemini":
    return provider, _gemini_client(api_key)
  return provider, _openai_client(api_key)


def resolve_model(settings: Settings) -> Tuple[str, str, Any]:
  """Walk the candidate models in order and keep the first usable one.

  Returns ``(model, provider, client)``. Only client construction is tried
  per candidate; the generation call itself is never repeated.
  """
  errors: List[str] = []
  for model in settings.model_candidates:
    try:
      provider, client = _build_client(model, settings)
    except Exception as exc:
      errors.append(f"{model}: {exc}")
      _log_debug(f"[LLM] candidate unavailable model={model} error={exc}",
                 enabled=settings.llm_debug)
      continue
    _log_debug(f"[LLM] using model={model} provider={provider}", enabled=settings.llm_debug)
    return model, provider, client
  detail = "; ".join(errors) or "no candidates configured"
  raise ConfigurationError(f"No generation model is available ({detail})")


def _gemini_text_sync(client: Any,
                      model: str,
                      prompt: str,
                      max_completion_tokens: int) -> str:
  config: Dict[str, Any] = {}
  if isinstance(max_completion_tokens, int) and max_completion_tokens > 0:
    config["max_output_tokens"] = max_completion_tokens
  response = client.models.generate_content(
      model=_canonical_gemini_model(model),
      contents=prompt,
      config=config or None,
  )
  return _gemini_text_from_response(response)


async def _openai_text(client: AsyncOpenAI,
                       model: str,
                       prompt: str,
                       settings: Settings) -> str:
  kwargs: Dict[str, Any] = {
      "model": model,
      "messages": [{"role": "user", "content": prompt}],
      "max_completion_tokens": settings.max_completion_tokens,
  }
  if settings.openai_reasoning_effort:
    kwargs["reasoning_effort"] = settings.openai_reasoning_effort
  completion = await client.chat.completions.create(**kwargs)
  return _extract_message_text(completion.choices[0].message.content)


def build_generator(settings: Settings) -> GenerateFn:
  """Bind the first usable candidate model into a ``prompt -> text`` callable.

  Raises ConfigurationError up front when no candidate has credentials.
  """
  model, provider, client = resolve_model(settings)

  async def generate(prompt: str) -> str:
    if provider == "gemini":
      text = await asyncio.to_thread(
          _gemini_text_sync,
          client,
          model,
          prompt,
          settings.max_completion_tokens,
      )
    else:
      text = await _openai_text(client, model, prompt, settings)
    _print_raw_output(provider=provider,
                      model=model,
                      raw_output=text,
                      enabled=settings.llm_debug)
    return text

  generate.model = model  # type: ignore[attr-defined]
  generate.provider = provider  # type: ignore[attr-defined]
  return generate
