"""Named-event dispatch for feed notifications."""

import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

NEW_ITEM = "new-item"
ERROR = "error"
INITIAL_LOAD_PREFIX = "initial-load:"

Listener = Callable[..., Any]


def initial_load_event(url: str) -> str:
    """Name of the one-shot event fired after a feed's first cycle."""
    return f"{INITIAL_LOAD_PREFIX}{url}"


class NotificationBus:
    """Synchronous publish/subscribe keyed by event name.

    Listeners run in registration order. A listener that raises is logged
    and skipped; the remaining listeners still run. Events with no
    listeners are dropped.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[tuple[Listener, bool]]] = {}

    def on(self, event: str, listener: Listener) -> Listener:
        """Subscribe ``listener`` to ``event``. Returns the listener."""
        self._listeners.setdefault(event, []).append((listener, False))
        return listener

    def once(self, event: str, listener: Listener) -> Listener:
        """Subscribe ``listener`` for the next ``event`` only."""
        self._listeners.setdefault(event, []).append((listener, True))
        return listener

    def off(self, event: str, listener: Listener) -> bool:
        """Unsubscribe the first registration of ``listener`` from ``event``."""
        entries = self._listeners.get(event, [])
        for i, (registered, _) in enumerate(entries):
            if registered is listener:
                del entries[i]
                if not entries:
                    del self._listeners[event]
                return True
        return False

    def remove_all_listeners(self, event: str | None = None) -> None:
        if event is None:
            self._listeners.clear()
        else:
            self._listeners.pop(event, None)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    def emit(self, event: str, *args: Any) -> bool:
        """Call every listener of ``event`` with ``args``.

        Returns True if the event had listeners.
        """
        entries = self._listeners.get(event)
        if not entries:
            return False

        # Copy so listeners may subscribe/unsubscribe while we iterate
        snapshot = list(entries)
        for listener, one_shot in snapshot:
            if one_shot:
                self.off(event, listener)
            try:
                listener(*args)
            except Exception:
                logger.exception("Listener %r for '%s' failed", listener, event)
        return True
