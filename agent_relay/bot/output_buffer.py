"""
Time-windowed accumulator for agent audio headed to the client.

Audio from the agent arrives in many small frames. Rather than writing each one to
the client, the relay collects them here and writes one larger chunk per window.
"""

import time
from typing import Callable, Optional


class OutputBuffer:
    """
    Ordered byte accumulator with a flush window.

    The window opens when the first byte arrives into an empty buffer and closes
    when the buffer is drained. Bytes always come out in the order they went in.
    """

    def __init__(self, window: float, clock: Callable[[], float] = time.monotonic):
        """
        Args:
            window: Seconds to accumulate before a flush is due
            clock: Monotonic time source, replaceable in tests
        """
        self.window = window
        self._clock = clock
        self._chunks = bytearray()
        self.window_start: Optional[float] = None

    def __len__(self) -> int:
        return len(self._chunks)

    @property
    def first_chunk(self) -> bool:
        """True while the buffer is empty, i.e. the next append opens a window."""
        return self.window_start is None

    def append(self, audio: bytes) -> bool:
        """
        Add audio to the buffer.

        Returns:
            bool: True if this append opened a new window
        """
        opened = False
        if self.window_start is None:
            self.window_start = self._clock()
            opened = True
        self._chunks.extend(audio)
        return opened

    def elapsed(self) -> float:
        if self.window_start is None:
            return 0.0
        return self._clock() - self.window_start

    def window_elapsed(self) -> bool:
        return self.window_start is not None and self.elapsed() >= self.window

    def drain(self) -> bytes:
        """Remove and return everything buffered, closing the window."""
        audio = bytes(self._chunks)
        self._chunks.clear()
        self.window_start = None
        return audio
