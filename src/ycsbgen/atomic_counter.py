"""
Atomic counter cell shared between generator components.

Python has no lock-free integer, so the cell keeps its value behind a
threading.Lock. Every read-modify-write goes through one critical section.
"""

import threading
from typing import Optional


class AtomicCounter:
    """Monotonic integer with fetch-and-add and compare-and-increment"""

    def __init__(self, initial: int = 0):
        self._value = initial
        self._lock = threading.Lock()

    @property
    def value(self) -> int:
        with self._lock:
            return self._value

    def fetch_add(self, delta: int = 1) -> int:
        """Add delta and return the value seen before the addition"""
        with self._lock:
            prior = self._value
            self._value += delta
            return prior

    def fetch_increment_below(self, limit: int) -> Optional[int]:
        """
        Increment only while the current value is below limit.

        Returns:
            The value before the increment, or None if the limit was reached
            (the counter is left untouched in that case).
        """
        with self._lock:
            if self._value >= limit:
                return None
            prior = self._value
            self._value += 1
            return prior

    def __repr__(self):
        return f"AtomicCounter({self.value})"
