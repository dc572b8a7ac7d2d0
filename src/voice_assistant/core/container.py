"""Service container that owns provider lifetimes for one application."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from typing import Any

LOGGER = logging.getLogger(__name__)

Factory = Callable[["ServiceContainer"], Any]


class ServiceContainer:
    """Lazy singleton registry whose instances are closed together."""

    def __init__(self) -> None:
        """Initialise container storage."""
        self._factories: dict[str, Factory] = {}
        self._instances: dict[str, Any] = {}

    def register(self, key: str, factory: Factory) -> None:
        """Register (or replace) the factory building ``key``."""
        self._factories[key] = factory
        self._instances.pop(key, None)

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

    async def aclose(self) -> None:
        """Close created instances in reverse creation order."""
        for key, instance in reversed(list(self._instances.items())):
            closer = getattr(instance, "aclose", None) or getattr(
                instance, "close", None
            )
            if closer is None:
                continue
            try:
                outcome = closer()
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as exc:  # noqa: BLE001 - keep closing siblings
                LOGGER.warning("Failed to close service '%s': %s", key, exc)
        self._instances.clear()


__all__ = ["ServiceContainer"]
