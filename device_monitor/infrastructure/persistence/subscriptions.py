"""Live-query fan-out shared by the store implementations."""

from __future__ import annotations

import logging
from typing import Callable, Generic, List, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SubscriberHub(Generic[T]):
    """Callbacks that receive the full current list on every change.

    A failing callback is logged and does not stop the others.
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._callbacks: List[Callable[[List[T]], None]] = []

    def add(self, callback: Callable[[List[T]], None], current: List[T]) -> Callable[[], None]:
        self._callbacks.append(callback)
        logger.info("[STORE] Subscribed to %s (subscribers=%d)", self._name, len(self._callbacks))
        self._deliver(callback, current)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def publish(self, items: List[T]) -> None:
        for callback in list(self._callbacks):
            self._deliver(callback, items)

    def __len__(self) -> int:
        return len(self._callbacks)

    def _deliver(self, callback: Callable[[List[T]], None], items: List[T]) -> None:
        try:
            callback(list(items))
        except Exception:
            logger.exception("[STORE] Error in %s subscriber", self._name)
