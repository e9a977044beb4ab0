"""
Handler registry: an ordered multimap from event name to callbacks.

Owned by one dispatcher instance. Handlers accumulate for the lifetime of
the owner; there is no removal. Registration may happen from any thread
while notifications are being dispatched.
"""

from __future__ import annotations

import threading
from collections.abc import Awaitable, Callable
from typing import Any

EventHandler = Callable[[Any], "Awaitable[None] | None"]


class HandlerRegistry:
    """Thread-safe, insertion-ordered event name -> handlers mapping."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = {}
        self._lock = threading.Lock()

    def register(self, event_name: str, handler: EventHandler) -> None:
        """Append `handler` to the list for `event_name`."""
        with self._lock:
            self._handlers.setdefault(event_name, []).append(handler)

    def handlers_for(self, event_name: str) -> tuple[EventHandler, ...]:
        """Snapshot of the handlers registered under `event_name`."""
        with self._lock:
            return tuple(self._handlers.get(event_name, ()))

    def has_handlers(self, event_name: str) -> bool:
        with self._lock:
            return bool(self._handlers.get(event_name))

    def event_names(self) -> list[str]:
        with self._lock:
            return list(self._handlers)

    def __len__(self) -> int:
        with self._lock:
            return sum(len(h) for h in self._handlers.values())
