"""
Last update tracking module.

Keeps track of when tracked entities last changed and tells interested
parties about it.
"""
import logging
import threading
from datetime import datetime
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[], None]


class UpdateNotifier:
    """
    Records that an update happened and notifies subscribers.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: List[UpdateCallback] = []
        self._update_count = 0
        self._last_update: Optional[datetime] = None

    @property
    def update_count(self) -> int:
        """Number of updates recorded so far."""
        return self._update_count

    @property
    def last_update(self) -> Optional[datetime]:
        """Time of the most recent update, or None if nothing changed yet."""
        return self._last_update

    def subscribe(self, callback: UpdateCallback) -> None:
        """
        Register a callback invoked after every update.

        Args:
            callback: No-argument callable
        """
        with self._lock:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: UpdateCallback) -> None:
        """
        Remove a previously registered callback.

        Args:
            callback: The callback to remove
        """
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    def update_happened(self) -> None:
        """
        Record an update and notify every subscriber.

        A failing subscriber is logged and does not stop the others.
        """
        with self._lock:
            self._update_count += 1
            self._last_update = datetime.utcnow()
            subscribers = list(self._subscribers)

        logger.debug(f"Update {self._update_count} recorded, notifying {len(subscribers)} subscriber(s)")

        for callback in subscribers:
            try:
                callback()
            except Exception:
                logger.exception(f"Update subscriber {callback!r} failed")


notifier = UpdateNotifier()


def update_happened() -> None:
    """Record an update on the default notifier."""
    notifier.update_happened()
