import time
from typing import Callable

Clock = Callable[[], float]
Sleeper = Callable[[float], None]


class Deadline:
    """Overall time budget measured on a monotonic clock (seconds)."""

    def __init__(self, budget_ms: int, clock: Clock = time.monotonic):
        self.budget_ms = budget_ms
        self._clock = clock
        self._started = clock()

    def elapsed_ms(self) -> int:
        return int(round((self._clock() - self._started) * 1000))

    def remaining_ms(self) -> int:
        return max(0, self.budget_ms - self.elapsed_ms())

    def expired(self) -> bool:
        return self.elapsed_ms() >= self.budget_ms

    def bound(self, timeout_ms: int) -> int:
        """Clamp a wait so it never outlives the deadline."""
        return max(0, min(timeout_ms, self.remaining_ms()))
