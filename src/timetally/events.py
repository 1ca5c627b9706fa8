"""
TimeTally Event Bus

A small synchronous publish/subscribe system. The timer engine and the
coordinator publish what happened; renderers and the CLI subscribe.

Usage:
    from timetally.events import EventBus, Event

    bus = EventBus()

    def handler(event: Event):
        print(f"Received: {event.name} with {event.payload}")

    bus.subscribe("task.started", handler)
    bus.publish("task.started", {"task": "Stretch", "index": 0})
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable
from uuid import uuid4

import structlog

logger = structlog.get_logger(__name__)


@dataclass
class Event:
    """An event that can be published and handled."""

    name: str
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)
    event_id: str = field(default_factory=lambda: str(uuid4()))

    def __str__(self) -> str:
        return f"Event({self.name}, id={self.event_id[:8]})"


# Type alias for event handlers
EventHandler = Callable[[Event], None]


class EventBus:
    """
    Synchronous event bus for pub/sub messaging.

    Features:
    - Multiple handlers per event
    - Wildcard subscriptions (e.g., "task.*")
    - Error isolation (one handler failure doesn't affect others)

    Handlers run inline, in subscription order, before publish() returns.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = {}
        self._published = 0

    def subscribe(self, event_name: str, handler: EventHandler) -> None:
        """
        Subscribe a handler to an event.

        Args:
            event_name: Event name to subscribe to. Use "*" suffix for wildcards.
            handler: Function that receives Event objects.
        """
        self._handlers.setdefault(event_name, []).append(handler)
        logger.debug("handler_subscribed", event_name=event_name, handler=_handler_name(handler))

    def unsubscribe(self, event_name: str, handler: EventHandler) -> bool:
        """
        Unsubscribe a handler from an event.

        Returns True if handler was found and removed.
        """
        if event_name not in self._handlers:
            return False
        try:
            self._handlers[event_name].remove(handler)
            logger.debug("handler_unsubscribed", event_name=event_name, handler=_handler_name(handler))
            return True
        except ValueError:
            return False

    def _get_handlers(self, event_name: str) -> list[EventHandler]:
        """Get all handlers that match an event name, including wildcards."""
        handlers: list[EventHandler] = []

        if event_name in self._handlers:
            handlers.extend(self._handlers[event_name])

        # "timer.*" matches "timer.tick"
        parts = event_name.split(".")
        for i in range(len(parts)):
            wildcard = ".".join(parts[: i + 1]) + ".*"
            if wildcard in self._handlers:
                handlers.extend(self._handlers[wildcard])

        if "*" in self._handlers:
            handlers.extend(self._handlers["*"])

        return handlers

    def publish(self, event_name: str, payload: dict[str, Any] | None = None) -> Event:
        """
        Publish an event to all subscribed handlers.

        Returns the Event object that was published.
        """
        ev = Event(name=event_name, payload=payload or {})
        self._published += 1

        for handler in self._get_handlers(ev.name):
            try:
                handler(ev)
            except Exception as e:
                logger.error(
                    "handler_error",
                    event_obj=str(ev),
                    handler=_handler_name(handler),
                    error=str(e),
                    exc_info=True,
                )

        return ev

    @property
    def published_count(self) -> int:
        """Number of events published since creation."""
        return self._published


def _handler_name(handler: EventHandler) -> str:
    return getattr(handler, "__name__", repr(handler))
