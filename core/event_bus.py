"""
Event bus for domain events.

Synchronous in-process pub/sub. Handlers run in the publisher's thread.
Handler errors are logged and swallowed: by the time an event is published
the write it describes has already been stored.
"""

import logging
from collections import defaultdict
from typing import Callable

from core.events import DomainEvent

logger = logging.getLogger(__name__)


class EventBus:
    """
    In-process event bus.

    Subscribe by event class name, publish by event instance. Handlers run
    in subscription order.
    """

    def __init__(self):
        self._subscribers: dict[str, list[Callable]] = defaultdict(list)

    def subscribe(self, event_type: str, callback: Callable) -> None:
        """
        Register a handler.

        Args:
            event_type: Event class name (e.g. 'StockAdjusted')
            callback: Called with the event instance
        """
        self._subscribers[event_type].append(callback)

    def publish(self, event: DomainEvent) -> None:
        """Deliver an event to every handler subscribed to its class name."""
        event_type = type(event).__name__

        for callback in self._subscribers.get(event_type, ()):
            try:
                callback(event)
            except Exception:
                logger.exception(
                    "Handler %s failed for %s (event_id=%s)",
                    getattr(callback, "__name__", repr(callback)),
                    event_type,
                    event.event_id,
                )
