"""Simple service container for dependency management."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeVar

T = TypeVar("T")

LOGGER = logging.getLogger(__name__)


class ServiceContainer:
    """Minimal dependency container with lazy singleton semantics.

    Instances are created on first use and released in reverse creation
    order by :meth:`close`, which calls ``close()`` on every instance that
    exposes one. Clients shared by several services (such as the LLM HTTP
    client) are built here once instead of living at module level.
    """

    def __init__(self) -> None:
        """Initialise container storage."""
        self._factories: dict[str, Callable[[ServiceContainer], Any]] = {}
        self._instances: dict[str, Any] = {}

    def register(self, key: str, factory: Callable[[ServiceContainer], T]) -> None:
        """Register a factory under a given key."""
        self._factories[key] = factory

    def resolve(self, key: str) -> Any:
        """Resolve a dependency by key, invoking its factory once."""
        if key in self._instances:
            return self._instances[key]
        if key not in self._factories:
            msg = f"Service '{key}' is not registered"
            raise KeyError(msg)
        instance = self._factories[key](self)
        self._instances[key] = instance
        return instance

    def try_resolve(self, key: str) -> Any | None:
        """Resolve a dependency if available; return None otherwise."""
        try:
            return self.resolve(key)
        except KeyError:
            return None

    def close(self) -> None:
        """Close resolved instances and forget them."""
        for key, instance in reversed(list(self._instances.items())):
            closer = getattr(instance, "close", None)
            if callable(closer):
                LOGGER.debug("Closing service '%s'", key)
                closer()
        self._instances.clear()

    def __enter__(self) -> ServiceContainer:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["ServiceContainer"]
