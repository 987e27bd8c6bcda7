"""Configuration -- environment and ``.env`` backed settings."""

__all__ = ["Settings", "cfg"]
