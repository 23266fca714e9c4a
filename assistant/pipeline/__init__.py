"""
Command interpretation pipeline
"""

from .anchor import TemporalAnchor, compute_anchor
from .prompt import build_prompt
from .recoverer import recover_json
from .validator import validate_envelope
from .dates import resolve_date, task_due_timestamp
from .signature import enforce_signature
from .fallback import classify_fallback
from .dispatcher import dispatch_action, dispatch_envelope
from .runner import CommandOutcome, run_command

__all__ = [
    "TemporalAnchor",
    "compute_anchor",
    "build_prompt",
    "recover_json",
    "validate_envelope",
    "resolve_date",
    "task_due_timestamp",
    "enforce_signature",
    "classify_fallback",
    "dispatch_action",
    "dispatch_envelope",
    "CommandOutcome",
    "run_command",
]
