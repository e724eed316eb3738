"""
Lifecycle Event Bus

In-process publish/subscribe for review session lifecycle notifications
(start, submit, complete, pause, resume, error).

Subscribers are kept on a blinker Signal. Delivery is synchronous and
fire-and-forget, in subscription order. Each handler call is isolated:
a handler that raises is logged and the remaining handlers still receive
the event.

Usage:
    from review_client.services.review.event_bus import SessionEventBus

    bus = SessionEventBus()
    unsubscribe = bus.subscribe(lambda event: print(event.type))
    ...
    unsubscribe()
"""

import logging
from typing import Callable

from blinker import Signal

from review_client.models.review import SessionEvent

logger = logging.getLogger(__name__)

SessionEventHandler = Callable[[SessionEvent], None]


class SessionEventBus:
    """Observer list for SessionEvent subscribers."""

    def __init__(self) -> None:
        self._signal = Signal("review-session-event")

    def subscribe(self, handler: SessionEventHandler) -> Callable[[], None]:
        """
        Register a handler.

        Handlers are held strongly, so lambdas and bound methods stay
        registered until unsubscribed. Subscribing the same handler twice
        registers it once.

        Args:
            handler: Called with every emitted SessionEvent

        Returns:
            A callable that unregisters the handler. Callers must invoke it
            when they no longer need events, otherwise the handler lives as
            long as the bus.
        """
        self._signal.connect(handler, weak=False)

        def unsubscribe() -> None:
            self.unsubscribe(handler)

        return unsubscribe

    def unsubscribe(self, handler: SessionEventHandler) -> None:
        """Remove a handler; unknown handlers are ignored."""
        self._signal.disconnect(handler)

    def emit(self, event: SessionEvent) -> None:
        """
        Deliver an event to every handler registered at emit time.

        Each handler gets its own deep copy, so a handler mutating the data
        payload cannot change what later handlers see.
        """
        # Signal.send() would stop at the first raising receiver
        for handler in list(self._signal.receivers.values()):
            try:
                handler(event.model_copy(deep=True))
            except Exception:
                logger.exception(
                    f"Error in review session event handler for {event.type.value}"
                )

    def clear(self) -> None:
        """Drop all handlers."""
        for handler in list(self._signal.receivers.values()):
            self._signal.disconnect(handler)

    def __len__(self) -> int:
        return len(self._signal.receivers)
