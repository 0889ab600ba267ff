"""
Change Signals

Listener list the storage controller publishes to after every operation
that changed its mirror. Listeners are plain callables run synchronously,
in subscription order, on the caller's thread.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, List, Tuple

logger = logging.getLogger(__name__)

class ChangeAction(Enum):
    """Operation that produced a change"""
    FETCH = "fetch"
    APPEND = "append"
    REMOVE = "remove"
    REMOVE_ALL = "remove_all"
    REPLACE = "replace"

@dataclass(frozen=True)
class StorageChange:
    """A single change to a storage mirror."""
    action: ChangeAction
    items: Tuple[Any, ...]
    inserted: Tuple[Any, ...] = ()
    removed: Tuple[Any, ...] = ()
    timestamp: datetime = field(default_factory=datetime.now)

Listener = Callable[[StorageChange], None]

class ChangeSignal:
    """
    Ordered listener list.

    A failing listener is logged and skipped; it never prevents the remaining
    listeners from running and never fails the operation that emitted.
    """

    def __init__(self):
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Listener:
        """
        Subscribe a listener to receive changes.

        Args:
            listener: Callable accepting a StorageChange

        Returns:
            The listener, so this can be used as a decorator
        """
        if listener not in self._listeners:
            self._listeners.append(listener)
        return listener

    def unsubscribe(self, listener: Listener) -> None:
        """Unsubscribe a listener. Unknown listeners are ignored."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, change: StorageChange) -> None:
        """Deliver a change to every listener."""
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception:
                logger.exception(f"Change listener {listener!r} failed on {change.action.value}")

    def clear(self) -> None:
        """Remove all listeners."""
        self._listeners.clear()

    @property
    def listener_count(self) -> int:
        """Get the number of active listeners."""
        return len(self._listeners)
