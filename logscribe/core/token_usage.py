"""Running total of tokens reported by translation providers."""

import logging
from typing import Callable

logger = logging.getLogger("logscribe")

UsageListener = Callable[[int], None]


class TokenUsageCounter:
    """Monotonic token counter with explicit observers.

    Listeners receive the new total after every change.
    """

    def __init__(self):
        self._total = 0
        self._listeners: list[UsageListener] = []

    @property
    def total(self) -> int:
        return self._total

    def add_usage(self, count: int) -> None:
        if count <= 0:
            return
        self._total += count
        self._notify()

    def reset(self) -> None:
        self._total = 0
        self._notify()

    def subscribe(self, listener: UsageListener) -> Callable[[], None]:
        """Register a listener. Returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._total)
            except Exception as e:
                logger.error(f"Token usage listener failed: {e}")
