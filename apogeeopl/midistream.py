"""Fixed-size queue of timestamped MIDI messages awaiting rendering."""

from __future__ import annotations

__all__ = ["StreamFullError", "StreamEmptyError", "MidiStream"]


class StreamFullError(Exception):
    """Raised when a message is added to a stream that has no room left."""


class StreamEmptyError(Exception):
    """Raised when a message is taken from an empty stream."""


class MidiStream:
    """Ring of ``(message, timestamp)`` pairs.

    One slot is always kept free, so a stream of size ``slots`` holds at
    most ``slots - 1`` messages.
    """

    SLOTS = 1024

    def __init__(self, slots: int = SLOTS) -> None:
        if slots < 2:
            raise ValueError("a stream needs at least two slots")
        self._slots = slots
        self._entries: list[tuple[int, int]] = [(0, 0)] * slots
        self._start = 0
        self._end = 0

    @property
    def capacity(self) -> int:
        """Largest number of messages the stream can hold."""
        return self._slots - 1

    def __len__(self) -> int:
        return (self._end - self._start) % self._slots

    def __bool__(self) -> bool:
        return self._start != self._end

    def put(self, message: int, timestamp: int) -> None:
        """Queue ``message`` to be played at ``timestamp``."""
        new_end = (self._end + 1) % self._slots
        if new_end == self._start:
            raise StreamFullError("MIDI stream is full")
        self._entries[self._end] = (message, timestamp)
        self._end = new_end

    def get(self) -> int:
        """Remove and return the oldest message."""
        if not self:
            raise StreamEmptyError("MIDI stream is empty")
        message, _ = self._entries[self._start]
        self._start = (self._start + 1) % self._slots
        return message

    def peek_time(self) -> int | None:
        """Timestamp of the oldest message, or None when the stream is empty."""
        if not self:
            return None
        return self._entries[self._start][1]

    def peek_time_at(self, pos: int) -> int | None:
        """Timestamp of the slot ``pos`` places after the oldest one.

        Returns None when the stream is empty.
        """
        if not self:
            return None
        return self._entries[(self._start + pos) % self._slots][1]

    def clear(self) -> None:
        """Drop every queued message."""
        self._start = 0
        self._end = 0
        self._entries = [(0, 0)] * self._slots