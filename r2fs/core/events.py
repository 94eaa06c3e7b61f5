"""Event emitter implementation using Observer Pattern."""
from typing import Dict, List, Callable, Optional

from .logging import get_logger

logger = get_logger('r2fs.events')


class EventEmitter:
    """
    Event emitter using Observer Pattern.

    Listener errors are logged and never reach the emitting code.
    """

    def __init__(self):
        """Initializes event emitter."""
        self._events: Dict[str, List[Callable]] = {}

    def on(self, event: str, callback: Callable) -> 'EventEmitter':
        """Registers an event handler."""
        if event not in self._events:
            self._events[event] = []
        self._events[event].append(callback)
        return self

    def emit(self, event: str, *args, **kwargs):
        """Emits an event."""
        for callback in list(self._events.get(event, [])):
            try:
                callback(*args, **kwargs)
            except Exception as e:
                logger.warning(f"Listener for '{event}' failed: {e}")

    def off(self, event: str, callback: Optional[Callable] = None) -> 'EventEmitter':
        """Removes an event handler."""
        if event not in self._events:
            return self

        if callback is None:
            del self._events[event]
        else:
            self._events[event] = [cb for cb in self._events[event] if cb != callback]

        return self
