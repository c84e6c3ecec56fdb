"""Event bus for discovery notifications.

Three events are published:
- ``discovered`` (ServerInfo): a server appeared or changed.
- ``lost`` (ServerInfo): a server disappeared or changed.
- ``error`` (Exception): a non-fatal socket error.

Listeners run synchronously in the emitting thread, in registration
order. A change of server info is published as ``lost`` then
``discovered`` by the same caller, so listeners see them in that order.
"""

import threading
from typing import Any, Callable, Optional

DISCOVERED = "discovered"
LOST = "lost"
ERROR = "error"

EVENTS = (DISCOVERED, LOST, ERROR)

Listener = Callable[[Any], None]


class EventBus:
    """Minimal observer registry keyed by event name."""

    def __init__(self, debug: Optional[Callable[[str], None]] = None):
        self._listeners: dict[str, list[tuple[Listener, bool]]] = {
            event: [] for event in EVENTS
        }
        self._lock = threading.Lock()
        self._debug = debug

    def on(self, event: str, listener: Listener) -> None:
        """Subscribe ``listener`` to ``event``."""
        self._add(event, listener, once=False)

    def once(self, event: str, listener: Listener) -> None:
        """Subscribe ``listener`` for the next ``event`` only."""
        self._add(event, listener, once=True)

    def off(self, event: str, listener: Listener) -> None:
        """Remove every subscription of ``listener`` to ``event``."""
        self._check_event(event)
        with self._lock:
            self._listeners[event] = [
                (fn, once) for fn, once in self._listeners[event] if fn != listener
            ]

    def listener_count(self, event: str) -> int:
        self._check_event(event)
        with self._lock:
            return len(self._listeners[event])

    def emit(self, event: str, payload: Any) -> None:
        """Call every listener of ``event`` with ``payload``."""
        self._check_event(event)
        with self._lock:
            listeners = list(self._listeners[event])
            self._listeners[event] = [
                (fn, once) for fn, once in listeners if not once
            ]

        if not listeners and event == ERROR and self._debug:
            self._debug(f"Unhandled 'error' event: {payload}")

        for listener, _ in listeners:
            listener(payload)

    def _add(self, event: str, listener: Listener, once: bool) -> None:
        self._check_event(event)
        if not callable(listener):
            raise TypeError(f"Listener for '{event}' must be callable")
        with self._lock:
            self._listeners[event].append((listener, once))

    @staticmethod
    def _check_event(event: str) -> None:
        if event not in EVENTS:
            raise ValueError(
                f"Unknown event '{event}'. Expected one of: {', '.join(EVENTS)}"
            )
