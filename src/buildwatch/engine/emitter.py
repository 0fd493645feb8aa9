"""
Minimal named-event emitter used by watch sessions.
"""

import logging
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

Listener = Callable[..., Any]


class Subscription:
    """Handle returned by `EventEmitter.on`; `dispose()` removes the listener."""

    def __init__(self, emitter: "EventEmitter", name: str, listener: Listener):
        self._emitter = emitter
        self.name = name
        self.listener = listener
        self.active = True

    def dispose(self) -> None:
        if not self.active:
            return
        self.active = False
        self._emitter._remove(self.name, self.listener)


class EventEmitter:
    """
    Synchronous event emitter.

    Listeners run in registration order on the emitting call stack;
    exceptions raised by a listener propagate to the emitter.
    """

    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = {}

    def on(self, name: str, listener: Listener) -> Subscription:
        self._listeners.setdefault(name, []).append(listener)
        return Subscription(self, name, listener)

    def emit(self, name: str, *args: Any) -> None:
        for listener in list(self._listeners.get(name, [])):
            listener(*args)

    def listener_count(self, name: str) -> int:
        return len(self._listeners.get(name, []))

    def remove_all_listeners(self) -> None:
        self._listeners.clear()

    def _remove(self, name: str, listener: Listener) -> None:
        listeners = self._listeners.get(name)
        if listeners and listener in listeners:
            listeners.remove(listener)
