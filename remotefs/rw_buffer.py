"""Small single-region read and write buffers for file data."""

from __future__ import annotations

import os
import time
from pathlib import Path

PathLike = str | os.PathLike[str]


class ReadBuffer:
    """Holds one recently read region of a file for a short time."""

    def __init__(self, capacity: int, ttl: float = 0.1) -> None:
        self.capacity = capacity
        self.ttl = ttl
        self._path: Path | None = None
        self._offset = 0
        self._data = b""
        self._filled_at = time.monotonic()

    def fill(self, path: PathLike, offset: int, data: bytes) -> None:
        """Replace the buffered region; data beyond the capacity is dropped."""
        self._path = Path(path)
        self._offset = offset
        self._filled_at = time.monotonic()
        self._data = bytes(data[: self.capacity])

    def read(self, path: PathLike, offset: int, length: int) -> bytes:
        """Return up to ``length`` buffered bytes at ``offset``, or ``b""`` on a miss."""
        end_of_data = self._offset + len(self._data)
        if (
            self._path is None
            or Path(path) != self._path
            or offset < self._offset
            or offset >= end_of_data
            or self._filled_at + self.ttl < time.monotonic()
        ):
            return b""
        start = offset - self._offset
        return self._data[start : start + length]

    def __repr__(self) -> str:
        return (
            f"ReadBuffer(path={self._path!r}, offset={self._offset}, "
            f"valid_up_to={len(self._data)}, capacity={self.capacity})"
        )


class WriteBuffer:
    """Collects contiguous writes to one file before they are flushed."""

    def __init__(self, capacity: int) -> None:
        self.capacity = capacity
        self._path: Path | None = None
        self._offset = 0
        self._buffer = bytearray()

    def is_appending(self, path: PathLike, offset: int) -> bool:
        """Tell whether a write at ``offset`` continues the buffered data."""
        return (
            self._path is not None
            and self._path == Path(path)
            and self._offset + len(self._buffer) == offset
        )

    def write(self, path: PathLike, offset: int, data: bytes) -> int:
        """Buffer ``data`` and return how many bytes were accepted."""
        if self.is_appending(path, offset):
            available = self.capacity - len(self._buffer)
            accepted = data[:available]
            self._buffer.extend(accepted)
            return len(accepted)
        self._path = Path(path)
        self._offset = offset
        self._buffer = bytearray(data[: self.capacity])
        return len(self._buffer)

    def is_full(self) -> bool:
        return len(self._buffer) >= self.capacity

    def clean(self) -> None:
        """Forget the buffered data."""
        self._path = None
        self._offset = 0
        self._buffer = bytearray()

    def content(self) -> tuple[Path | None, int, bytes]:
        """Return the buffered path, its starting offset and the data."""
        return self._path, self._offset, bytes(self._buffer)

    def __repr__(self) -> str:
        return (
            f"WriteBuffer(path={self._path!r}, offset={self._offset}, "
            f"valid_up_to={len(self._buffer)}, capacity={self.capacity})"
        )