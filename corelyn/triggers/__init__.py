"""Trigger rules -- pattern matching and user-authored reactions."""

__all__ = [
    "InProcessActionRunner",
    "SubprocessActionRunner",
    "TriggerEngine",
    "TriggerOutcome",
    "TriggerRule",
    "create_runner",
]
