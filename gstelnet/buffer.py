"""Provides the ResponseBuffer class."""

import threading


class ResponseBuffer:
    """
    Collects bytes received from the server between two commands.

    The relay protocol appends from the reactor thread while Connection.execute
    drains from the caller's thread, so both go through a lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._data = bytearray()

    def write(self, data: bytes) -> None:
        """Append data to the buffer."""
        with self._lock:
            self._data.extend(data)

    def drain(self) -> bytes:
        """Return everything collected so far and reset the buffer."""
        with self._lock:
            data = bytes(self._data)
            self._data = bytearray()
        return data

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)
