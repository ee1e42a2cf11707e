"""Fixed-capacity history of recently served question ids."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterator


class RecentHistory:
    """
    Ring buffer of the last N served ids.

    Inserting into a full buffer evicts the oldest id. Membership tests are
    O(1) through a reference count kept alongside the slots, so an id served
    twice inside the window stays "recent" until both entries are evicted.
    """

    def __init__(self, capacity: int = 5):
        if capacity < 0:
            raise ValueError("capacity must be >= 0")
        self.capacity = capacity
        self._slots: list[str | None] = [None] * capacity
        self._head = 0  # Next slot to write
        self._size = 0
        self._counts: Counter[str] = Counter()

    def push(self, question_id: str) -> str | None:
        """
        Record a served id.

        Returns:
            The evicted id, if the buffer was full
        """
        if self.capacity == 0:
            return None

        evicted = None
        if self._size == self.capacity:
            evicted = self._slots[self._head]
            if evicted is not None:
                self._counts[evicted] -= 1
                if self._counts[evicted] <= 0:
                    del self._counts[evicted]
        else:
            self._size += 1

        self._slots[self._head] = question_id
        self._counts[question_id] += 1
        self._head = (self._head + 1) % self.capacity
        return evicted

    def clear(self) -> None:
        self._slots = [None] * self.capacity
        self._head = 0
        self._size = 0
        self._counts.clear()

    def __contains__(self, question_id: object) -> bool:
        return question_id in self._counts

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[str]:
        """Iterate oldest to newest."""
        start = (self._head - self._size) % self.capacity if self.capacity else 0
        for offset in range(self._size):
            slot = self._slots[(start + offset) % self.capacity]
            if slot is not None:
                yield slot
