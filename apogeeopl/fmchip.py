"""An OPL3 chip fed through a latency queue of register writes."""

from __future__ import annotations

from collections import deque

from .chip import NATIVE_RATE, OPL3Chip

__all__ = ["LATENCY", "FMChip"]

# Frames a register write waits before it reaches the chip (50 ms).
LATENCY = (50 * NATIVE_RATE) // 1000
# Minimum spacing, in frames, between two queued writes.
_WRITE_SPACING = 2


class FMChip:
    """Queues register writes and applies them at their due frame while rendering."""

    def __init__(self, rate: int = NATIVE_RATE) -> None:
        self.init(rate)

    def init(self, rate: int) -> None:
        """Reset the chip and drop every pending write."""
        self.chip = OPL3Chip(rate)
        self._queue: deque[tuple[int, int, int]] = deque()
        self._counter = 0
        self._last_write = 0

    @property
    def counter(self) -> int:
        """Number of frames rendered since :meth:`init`."""
        return self._counter

    @property
    def pending(self) -> int:
        """Number of writes not yet applied."""
        return len(self._queue)

    def write_reg(self, reg: int, data: int) -> None:
        """Schedule a register write after the latency."""
        due = max(self._last_write + _WRITE_SPACING, self._counter + LATENCY)
        self._queue.append((due, reg & 0xFFFF, data & 0xFF))
        self._last_write = due

    def generate(self, length: int) -> list[int]:
        """Render ``length`` frames as interleaved left/right samples."""
        if length < 0:
            raise ValueError("frame count must not be negative")
        samples: list[int] = []
        for _ in range(length):
            while self._queue and self._queue[0][0] < self._counter:
                _, reg, data = self._queue.popleft()
                self.chip.write_reg(reg, data)
            samples.extend(self.chip.generate())
            self._counter += 1
        return samples