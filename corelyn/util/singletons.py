"""Module-level singletons that tests rebuild between runs."""

from __future__ import annotations

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

# name -> function that rebuilds the singleton
_resetters: dict[str, Callable[[], None]] = {}


def register_singleton(name: str, reset_fn: Callable[[], None]) -> None:
    """Register *reset_fn* under *name*; re-registering a name replaces it."""
    _resetters[name] = reset_fn


def reset_all_singletons() -> list[str]:
    """Rebuild every registered singleton and return the names that were reset."""
    names = list(_resetters)
    for name in names:
        logger.debug("[singletons.reset] %s", name)
        _resetters[name]()
    return names
