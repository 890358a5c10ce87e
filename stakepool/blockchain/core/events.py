"""
Event system for ledger events.

Provides a simple pub/sub mechanism for settlement and transaction events.
Events are published only after the state change that raised them has been
committed, so listeners always observe the post-commit ledger.
"""
from typing import Dict, List, Callable, Any
import logging
import threading

from ..observability import metrics
from ...protocol.types.events import EventLog

logger = logging.getLogger(__name__)


class EventBus:
    """
    Event bus for ledger events.

    Subscriptions may change from any thread. Delivery is synchronous, in
    the emitting thread, in subscription order.
    """

    def __init__(self):
        self.listeners: Dict[str, List[Callable]] = {}
        self._lock = threading.Lock()

    def subscribe(self, event_type: str, callback: Callable) -> None:
        """
        Subscribe to an event type.

        Args:
            event_type: Event name (e.g., 'WalletUnlocked', 'MaintainerWithdrawn')
            callback: Called with the event args (and `seq` for committed logs)
        """
        with self._lock:
            self.listeners.setdefault(event_type, []).append(callback)
        logger.debug(f"Subscribed to event: {event_type}")

    def unsubscribe(self, event_type: str, callback: Callable) -> None:
        with self._lock:
            callbacks = self.listeners.get(event_type, [])
            if callback not in callbacks:
                logger.warning(f"Callback not found for event: {event_type}")
                return
            callbacks.remove(callback)
        logger.debug(f"Unsubscribed from event: {event_type}")

    def emit(self, event_type: str, **data: Any) -> None:
        """Deliver an event to its subscribers. A failing callback is logged and skipped."""
        metrics.event_emissions_total.labels(event=event_type).inc()

        with self._lock:
            listeners = list(self.listeners.get(event_type, []))

        if not listeners:
            logger.debug(f"No listeners for event: {event_type}")
            return

        logger.debug(f"Emitting event: {event_type} to {len(listeners)} listener(s)")

        for callback in listeners:
            try:
                callback(**data)
            except Exception as e:
                logger.error(f"Error in event callback for {event_type}: {e}", exc_info=True)

    def publish(self, log: EventLog) -> None:
        """Emit a committed event log entry."""
        self.emit(log.name, seq=log.seq, **log.args)

    def clear(self, event_type: str = None) -> None:
        with self._lock:
            if event_type:
                self.listeners.pop(event_type, None)
            else:
                self.listeners.clear()
        logger.debug(f"Cleared listeners for event: {event_type or 'all'}")


# Global event bus instance
event_bus = EventBus()
