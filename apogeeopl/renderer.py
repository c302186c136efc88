"""Feeds timestamped MIDI messages to a synthesizer while rendering audio."""

from __future__ import annotations

import threading
from typing import Protocol

from .midistream import MidiStream

__all__ = ["DEFAULT_SAMPLE_RATE", "MidiRenderer"]

DEFAULT_SAMPLE_RATE = 49716


class _Synthesizer(Protocol):
    def write(self, data: int) -> None: ...

    def generate(self, length: int) -> list[int]: ...

    def reset(self) -> None: ...


def _millis_to_frames(sample_rate: int, millis: int) -> int:
    return int(sample_rate * millis / 1000.0)


class MidiRenderer:
    """Renders a synthesizer into a looping frame buffer.

    Messages are queued with a position inside the buffer and handed to the
    synthesizer exactly when rendering reaches that frame.
    """

    def __init__(
        self,
        synth: _Synthesizer,
        sample_rate: int = DEFAULT_SAMPLE_RATE,
        buffer_ms: int = 100,
        chunk_ms: int = 10,
        latency_ms: int = 0,
    ) -> None:
        self.synth = synth
        self.sample_rate = sample_rate
        self.chunk_size = _millis_to_frames(sample_rate, chunk_ms)
        if self.chunk_size <= 0:
            raise ValueError("chunk must hold at least one frame")
        requested = _millis_to_frames(sample_rate, buffer_ms)
        chunks = -(-requested // self.chunk_size)
        self.buffer_size = max(chunks, 1) * self.chunk_size
        self.latency = _millis_to_frames(sample_rate, latency_ms)
        self._stream = MidiStream()
        self._frames_rendered = 0
        self._lock = threading.RLock()

    @property
    def frames_rendered(self) -> int:
        """Position in the buffer where rendering continues."""
        return self._frames_rendered

    def push(self, message: int, position: int) -> None:
        """Queue ``message`` for the buffer frame ``position`` plus latency."""
        with self._lock:
            self._stream.put(message, (position + self.latency) % self.buffer_size)

    def render(self, frames: int) -> list[int]:
        """Render ``frames`` stereo frames and return interleaved samples."""
        if frames < 0:
            raise ValueError("frame count must not be negative")
        samples: list[int] = []
        remaining = frames
        with self._lock:
            while remaining > 0:
                due = self._stream.peek_time()
                while due is not None and due == self._frames_rendered:
                    self.synth.write(self._stream.get())
                    due = self._stream.peek_time()
                if due is not None and due > self._frames_rendered:
                    count = min(due - self._frames_rendered, remaining)
                else:
                    count = remaining
                samples.extend(self.synth.generate(count))
                self._frames_rendered += count
                remaining -= count
            if self._frames_rendered >= self.buffer_size:
                self._frames_rendered -= self.buffer_size
        return samples

    def reset(self) -> None:
        """Reset the synthesizer and drop every queued message."""
        with self._lock:
            self.synth.reset()
            self._stream.clear()