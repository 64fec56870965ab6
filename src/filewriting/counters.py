"""Process-wide write counters shared by the writer workers and the stats reporter."""

from __future__ import annotations

import threading
from typing import NamedTuple


class CounterSnapshot(NamedTuple):
    written_bytes: int
    written_files: int


class AtomicCounter:
    """Monotonic integer counter, safe to update from any number of threads."""

    def __init__(self, value: int = 0) -> None:
        self._value = value
        self._lock = threading.Lock()

    def add(self, amount: int) -> int:
        if amount < 0:
            raise ValueError("Counters only move forward")
        with self._lock:
            self._value += amount
            return self._value

    def increment(self) -> int:
        return self.add(1)

    def load(self) -> int:
        return self._value


class WriteCounters:
    """Total bytes and files written by all workers during this process."""

    def __init__(self) -> None:
        self._bytes = AtomicCounter()
        self._files = AtomicCounter()

    def add_bytes(self, amount: int) -> None:
        self._bytes.add(amount)

    def increment_files(self) -> None:
        self._files.increment()

    def record_write(self, size: int) -> None:
        self.add_bytes(size)
        self.increment_files()

    @property
    def written_bytes(self) -> int:
        return self._bytes.load()

    @property
    def written_files(self) -> int:
        return self._files.load()

    def snapshot(self) -> CounterSnapshot:
        # Each value is read on its own; the pair is not a consistent joint view
        return CounterSnapshot(self._bytes.load(), self._files.load())
