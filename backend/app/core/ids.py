"""Video 식별자 발급기."""

import threading


class IdentityAllocator:
    """Hands out strictly positive, monotonically increasing video ids.

    Safe to share between threads. The first id returned is ``start + 1``.
    """

    def __init__(self, start: int = 0):
        if start < 0:
            raise ValueError("start must not be negative")
        self._last = start
        self._lock = threading.Lock()

    def next_id(self) -> int:
        with self._lock:
            self._last += 1
            return self._last

    def advance_to(self, value: int) -> None:
        """Make sure no id <= value is handed out from now on."""
        with self._lock:
            if value > self._last:
                self._last = value

    @property
    def last(self) -> int:
        return self._last
