"""Persistent state -- chat logs and trigger configuration."""

__all__ = [
    "ChatMessage",
    "ChatStore",
    "TriggerStore",
]
