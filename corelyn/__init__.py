"""corelyn -- assistant response pipeline: commands, Markdown rendering and triggers."""

__version__ = "0.3.0"
