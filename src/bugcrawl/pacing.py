"""Minimum-interval pacing between requests of one kind.

A :class:`Pacer` remembers when the previous request of its kind was issued
and, on ``wait()``, sleeps only for whatever part of ``min_interval`` has not
already elapsed. Time spent waiting on the network therefore counts toward the
interval instead of being added on top of it.
"""

from __future__ import annotations

import time
from collections.abc import Callable


class Pacer:
    def __init__(
        self,
        min_interval: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if min_interval < 0:
            raise ValueError(f"min_interval must not be negative, got {min_interval}")
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last: float | None = None

    def wait(self) -> float:
        """Block until the interval since the previous call has passed.

        Returns the number of seconds slept (0.0 on the first call).
        """
        slept = 0.0
        if self._last is not None:
            remaining = self.min_interval - (self._clock() - self._last)
            if remaining > 0:
                self._sleep(remaining)
                slept = remaining
        self._last = self._clock()
        return slept


__all__ = ["Pacer"]
