"""Application-level exception types for corelyn."""

from __future__ import annotations


class CorelynError(Exception):
    """Base exception for corelyn."""


class ConfigurationError(CorelynError):
    """Base exception for configuration and startup validation errors."""


class ApiKeyNotConfiguredError(ConfigurationError):
    """Raised when a provider call is attempted without an API key."""


class UnknownProviderError(ConfigurationError):
    """Raised when the configured provider name is not in the provider table."""


class UnknownCommandError(CorelynError):
    """Raised when an embedded command names no registered tool."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class CommandExecutionError(CorelynError):
    """Raised when a registered tool throws while running."""

    def __init__(self, name: str, cause: BaseException) -> None:
        detail = str(cause) or type(cause).__name__
        super().__init__(f"Tool {name} threw: {detail}")
        self.name = name


class PatternCompileError(CorelynError):
    """Raised when a trigger's regex pattern does not compile."""


class ActionExecutionError(CorelynError):
    """Raised when a trigger's reaction code fails, including isolation timeouts."""


class ProviderError(CorelynError):
    """Raised when the provider exchange fails (network, HTTP status or decoding)."""
