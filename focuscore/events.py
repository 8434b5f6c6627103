"""Synchronous publish/subscribe signals."""

from __future__ import annotations

import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)


class Signal:
    """An ordered observer list.

    ``emit`` calls every current subscriber, in subscription order, before
    returning. Nothing is replayed to late subscribers.
    """

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._subscribers: list[Callable[..., Any]] = []

    def connect(self, callback: Callable[..., Any]) -> Callable[[], None]:
        """Subscribe; returns a function that removes the subscription."""
        self._subscribers.append(callback)

        def disconnect() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return disconnect

    def emit(self, *args: Any) -> None:
        # Snapshot so subscribers may disconnect while being notified.
        for callback in list(self._subscribers):
            callback(*args)

    def __len__(self) -> int:
        return len(self._subscribers)

    def __repr__(self) -> str:
        return f"Signal({self.name!r}, subscribers={len(self._subscribers)})"
