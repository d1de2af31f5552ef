"""RoundRobinState — per-scope positional counters for round-robin routing."""

from __future__ import annotations

import threading


class RoundRobinState:
    """Last-picked index per scope key, held in process memory.

    The index is positional: candidate lists are re-filtered on every call,
    so the same index can point at a different vendor or designer later on.
    A single lock makes each read-advance-write atomic; fairness across
    processes is not attempted.
    """

    def __init__(self) -> None:
        self._last: dict[str, int] = {}
        self._lock = threading.Lock()

    def next_index(self, scope_key: str, size: int) -> int:
        """Advance the counter for *scope_key* and return the index to pick.

        A fresh key starts at -1, so its first pick is position 0.

        Raises:
            ValueError: if size is not positive.
        """
        if size <= 0:
            raise ValueError("Cannot advance round-robin over an empty candidate list")
        with self._lock:
            index = (self._last.get(scope_key, -1) + 1) % size
            self._last[scope_key] = index
            return index

    def last_index(self, scope_key: str) -> int | None:
        with self._lock:
            return self._last.get(scope_key)


def vendor_scope(service_id: str) -> str:
    return f"vendor_{service_id}"


def designer_scope(vendor_user_id: str) -> str:
    return f"designer_{vendor_user_id}"
