"""In-memory event bus.

Simple publish/subscribe for domain events.  Handlers are called
synchronously in registration order.  Implements ``EventBus`` port.

A failing handler is logged and does not stop delivery to the others:
status notifications are advisory and must never abort a vectorization
run.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable

import structlog

logger = structlog.get_logger(__name__)


class InMemoryEventBus:
    """Synchronous in-memory event bus."""

    def __init__(self) -> None:
        self._handlers: dict[type, list[Callable[..., Any]]] = defaultdict(list)

    def subscribe(self, event_type: type, handler: Callable[..., Any]) -> None:
        """Register *handler* to be called when *event_type* is published."""
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: type, handler: Callable[..., Any]) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, event: Any) -> None:
        """Dispatch *event* to all registered handlers for its type."""
        for handler in list(self._handlers.get(type(event), [])):
            try:
                handler(event)
            except Exception as e:
                logger.warning(
                    "event_bus.handler_failed",
                    event=type(event).__name__,
                    error=str(e),
                )
