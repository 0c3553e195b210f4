"""Replayable byte stream for multi-pass consumers.

Wraps a forward-only binary source so several consumers can read the same
bytes in turn. Bytes are buffered as they are read from the source; the
source itself is never rewound.
"""

from __future__ import annotations

import io
from typing import BinaryIO


class ReplayableStream(io.RawIOBase):
    """Seekable view over a forward-only binary source.

    Contract: :meth:`mark` is called once (the constructor marks position
    zero); every :meth:`reset` returns to that mark, any number of times.
    Only create one when more than one consumer needs the same bytes.
    """

    def __init__(self, source: BinaryIO) -> None:
        super().__init__()
        self._source = source
        self._buffer = bytearray()
        self._exhausted = False
        self._position = 0
        self._mark = 0

    def readable(self) -> bool:
        return True

    def mark(self) -> None:
        """Remember the current position for later resets."""
        self._mark = self._position

    def reset(self) -> None:
        """Return to the marked position."""
        self._position = self._mark

    def readinto(self, b: bytearray | memoryview) -> int:  # type: ignore[override]
        wanted = len(b)
        self._fill(self._position + wanted)
        chunk = self._buffer[self._position : self._position + wanted]
        b[: len(chunk)] = chunk
        self._position += len(chunk)
        return len(chunk)

    def _fill(self, size: int) -> None:
        while not self._exhausted and len(self._buffer) < size:
            chunk = self._source.read(max(size - len(self._buffer), io.DEFAULT_BUFFER_SIZE))
            if not chunk:
                self._exhausted = True
                break
            self._buffer.extend(chunk)
