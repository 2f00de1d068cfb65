"""Synchronous fan-out of "favorites changed" signals to subscribers."""

from __future__ import annotations

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

Listener = Callable[[], None]
Unsubscribe = Callable[[], None]

__all__ = ["ChangeNotifier", "Listener", "Unsubscribe"]


class ChangeNotifier:
    """Invoke every subscribed listener after a successful favorites mutation.

    Subscribers are held in an immutable tuple that is replaced on every
    subscribe/unsubscribe, so a listener may (un)subscribe while a notification
    is being delivered without affecting the snapshot being iterated.
    """

    def __init__(self) -> None:
        self._listeners: tuple[Listener, ...] = ()

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: Listener) -> Unsubscribe:
        """Register ``listener`` and return a callable that removes it."""

        if listener not in self._listeners:
            self._listeners = (*self._listeners, listener)

        def unsubscribe() -> None:
            self._listeners = tuple(
                existing for existing in self._listeners if existing != listener
            )

        return unsubscribe

    def notify(self) -> None:
        """Call each listener once; failures are logged and never propagate."""

        for listener in self._listeners:
            try:
                listener()
            except Exception:  # noqa: BLE001
                logger.exception("Favorites change listener %r failed", listener)
