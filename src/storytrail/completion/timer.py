"""Client-observed run timer.

The clock starts when the player actually begins (first stop unlocked and
either reached or already solved) and stops on the correct answer at the end
stop. Only the final elapsed value is persisted; the ticking display is
cosmetic.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator, Callable


def now_ms() -> int:
    return int(time.time() * 1000)


def format_time(ms: int) -> str:
    """``MM:SS`` under an hour, ``H:MM:SS`` from an hour on."""
    total_seconds = max(0, ms) // 1000
    hours, rem = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rem, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes:02d}:{seconds:02d}"


class RunTimer:
    """Elapsed-time counter with a one-shot start and a one-shot stop."""

    def __init__(self, clock: Callable[[], int] = now_ms) -> None:
        self._clock = clock
        self.start_time_ms: int | None = None
        self.final_time_ms: int | None = None
        self.disabled = False

    @property
    def running(self) -> bool:
        return self.start_time_ms is not None and self.final_time_ms is None

    @property
    def started(self) -> bool:
        return self.start_time_ms is not None

    def disable(self) -> None:
        """Prevent the timer from ever starting (player already finished this trail)."""
        if not self.started:
            self.disabled = True

    def start(self) -> bool:
        """Start once. Returns True only on the call that actually started it."""
        if self.disabled or self.started:
            return False
        self.start_time_ms = self._clock()
        return True

    def elapsed_ms(self) -> int:
        if self.final_time_ms is not None:
            return self.final_time_ms
        if self.start_time_ms is None:
            return 0
        return max(0, self._clock() - self.start_time_ms)

    def stop(self) -> int | None:
        """Freeze and return the final elapsed time; None if it never ran."""
        if not self.running:
            return self.final_time_ms
        self.final_time_ms = max(0, self._clock() - self.start_time_ms)
        return self.final_time_ms

    async def ticks(self, interval: float = 1.0) -> AsyncIterator[str]:
        """Formatted elapsed time every ``interval`` seconds while running."""
        while self.running:
            yield format_time(self.elapsed_ms())
            await asyncio.sleep(interval)
        if self.final_time_ms is not None:
            yield format_time(self.final_time_ms)
