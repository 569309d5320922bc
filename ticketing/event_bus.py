"""
Event bus for ticket domain events.

Synchronous in-process pub/sub. Handlers execute immediately in the same
thread as the publisher. Handler errors are logged but never propagate:
the ticket mutation has already happened.
"""

import logging
from typing import Callable

from ticketing.events import TicketEvent

logger = logging.getLogger(__name__)


class EventBus:
    """
    In-process event bus for ticket events.

    Subscribe by event class or class name. A subscriber to a base class
    (e.g. TicketEvent) receives every subclass too. Handlers are called in
    the order they subscribed, most specific event class first.
    """

    def __init__(self):
        self._subscribers: dict[str, list[Callable]] = {}

    @staticmethod
    def _key(event_type: type[TicketEvent] | str) -> str:
        return event_type if isinstance(event_type, str) else event_type.__name__

    def subscribe(self, event_type: type[TicketEvent] | str, callback: Callable) -> None:
        """
        Subscribe to events of a specific type.

        Args:
            event_type: Event class, or its name (e.g. 'TicketPaid')
            callback: Function to call when event is published
        """
        self._subscribers.setdefault(self._key(event_type), []).append(callback)

    def unsubscribe(self, event_type: type[TicketEvent] | str, callback: Callable) -> bool:
        """Remove a subscription. Returns False if it was not subscribed."""
        callbacks = self._subscribers.get(self._key(event_type), [])
        if callback not in callbacks:
            return False
        callbacks.remove(callback)
        return True

    def publish(self, event: TicketEvent) -> None:
        """
        Publish an event to all subscribers of its class and base classes.

        Handler errors are logged and do not stop later handlers.
        """
        for klass in type(event).__mro__:
            for callback in list(self._subscribers.get(klass.__name__, [])):
                try:
                    callback(event)
                except Exception:
                    logger.exception(
                        "Handler %s failed for %s (event_id=%s)",
                        getattr(callback, "__name__", repr(callback)),
                        type(event).__name__,
                        event.event_id,
                    )
