"""Provider collaborator -- exchanges ordered message lists for response text."""

__all__ = [
    "DEFAULT_SYSTEM_PROMPT",
    "HttpProvider",
    "PROVIDERS",
    "Provider",
    "create_provider",
]
