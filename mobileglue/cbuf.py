"""A growable byte buffer that reserves space in 256-byte steps."""

from __future__ import annotations

__all__ = ["CharBuf"]

_STEP = 256


class CharBuf:
    """Byte buffer whose reserved capacity grows in multiples of 256 bytes."""

    def __init__(self) -> None:
        self._data = bytearray()
        self._capacity = _STEP

    @property
    def data(self) -> bytes:
        """The bytes appended so far."""
        return bytes(self._data)

    @property
    def length(self) -> int:
        """Number of bytes appended so far."""
        return len(self._data)

    @property
    def capacity(self) -> int:
        """Number of bytes currently reserved."""
        return self._capacity

    def append(self, data) -> None:
        """Append a bytes-like object; raises TypeError for anything else."""
        chunk = memoryview(data).tobytes()
        if len(self._data) + len(chunk) > self._capacity:
            self._capacity += (len(chunk) // _STEP + 1) * _STEP
        self._data += chunk

    def __len__(self) -> int:
        return len(self._data)

    def __bytes__(self) -> bytes:
        return bytes(self._data)

    def __repr__(self) -> str:
        return f"CharBuf(length={self.length}, capacity={self.capacity})"