from __future__ import annotations

from datetime import timedelta
from typing import Dict

from .anchor import TemporalAnchor

_WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday",
                  "Saturday", "Sunday")

COMMAND_PROMPT_TEMPLATE = """You are a smart assistant that extracts structured information from user commands.

==================== CURRENT DATE CONTEXT ====================
Today's date is: {TODAY}
Current year is: {YEAR}
Current month is: {MONTH}
Current day is: {DAY}
Timezone: {TIMEZONE}
===============================================================

==================== DATE RULES (CRITICAL) ====================
- If user says "today", use EXACTLY: {TODAY}
- If user says "tomorrow", use EXACTLY: {TOMORROW}
- If user says "next week", add 7 days to today's date: {NEXT_WEEK}
- If user does NOT specify a year, ALWAYS assume the current year: {YEAR}
- NEVER return a year before {YEAR}. This is absolutely forbidden.
- All dates MUST be in YYYY-MM-DD format (ISO format).
- When user mentions a day of the week (Monday, Tuesday, etc.), use the NEXT occurrence after today.
  Next occurrences from {TODAY}: {WEEKDAYS}
===============================================================

Sender name (for context only, never write it into an email): {USER_NAME}

User input: "{TEXT}"

CRITICAL:
- You MUST return ONLY a valid JSON object.
- No markdown, no explanation, no extra text.

Decide the intent strictly:

1. If user is asking to schedule a meeting, event, or appointment -> action: "calendar"
2. If user is asking to create a task or reminder -> action: "task"
3. If user is asking to write or send an email -> action: "email"
4. Otherwise -> action: "unknown"

------------------------------------
FOR CALENDAR ACTION:
Return JSON with:
{
  "action": "calendar",
  "title": "...",
  "date": "YYYY-MM-DD",
  "time": "HH:MM" (24-hour),
  "durationMinutes": number (in minutes),
  "location": "..."
}

CALENDAR DATE EXAMPLES (based on today = {TODAY}):
- "tomorrow at 5pm" -> date: "{TOMORROW}", time: "17:00"
- "today at 3pm" -> date: "{TODAY}", time: "15:00"
- "next Monday" -> date: "{NEXT_MONDAY}"
- "January 25" -> date: "{YEAR}-01-25" (use current year)

------------------------------------
FOR TASK ACTION:
Return JSON with:
{
  "action": "task",
  "title": "...",
  "dueDate": "YYYY-MM-DD",
  "priority": "low" | "medium" | "high"
}

------------------------------------
FOR EMAIL ACTION:
Return JSON with:
{
  "action": "email",
  "recipient": "...",
  "subject": "...",
  "body": "..." (complete professional email, 120-150 words)
}

EMAIL BODY RULES:
- Write only the email body content.
- Do NOT include any signature or sign-off.
- Do NOT include "Best regards", "Sincerely", "Thanks", etc.
- Do NOT include sender name.
- The system will add the signature automatically.

------------------------------------
IMPORTANT:
- If the intent is calendar, DO NOT return email.
- If the intent is email, DO NOT return calendar.
- Choose ONLY ONE action for each request.
- Only when the input clearly contains several separate requests, return
  {"actions": [ ... ]} with one object per request, in the order they were
  given, and no top-level "action".
- REMEMBER: The current year is {YEAR}. NEVER use any year before this.

Return ONLY the JSON object."""


def _weekday_examples(anchor: TemporalAnchor) -> str:
  parts = []
  for index, name in enumerate(_WEEKDAY_NAMES):
    parts.append(f"{name}={anchor.next_weekday(index).isoformat()}")
  return ", ".join(parts)


def build_prompt(text: str, user_name: str, anchor: TemporalAnchor) -> str:
  """Compose the instruction sent to the generation backend."""
  replacements: Dict[str, str] = {
      "{TODAY}": anchor.today.isoformat(),
      "{TOMORROW}": anchor.tomorrow.isoformat(),
      "{NEXT_WEEK}": (anchor.today + timedelta(days=7)).isoformat(),
      "{NEXT_MONDAY}": anchor.next_weekday(0).isoformat(),
      "{WEEKDAYS}": _weekday_examples(anchor),
      "{YEAR}": str(anchor.year),
      "{MONTH}": str(anchor.month),
      "{DAY}": str(anchor.day),
      "{TIMEZONE}": anchor.timezone,
      "{USER_NAME}": (user_name or "User").strip() or "User",
  }
  prompt = COMMAND_PROMPT_TEMPLATE
  for token, value in replacements.items():
    prompt = prompt.replace(token, value)
  # user text last so braces or tokens inside it are left alone
  return prompt.replace("{TEXT}", (text or "").replace('"', '\\"'))
