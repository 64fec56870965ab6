from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from time import perf_counter
from typing import Callable, Deque, Iterator, Optional

from .cancellation import CancellationToken
from .constants import RATE_UNAVAILABLE, STATS_INTERVAL, STATS_WINDOW
from .counters import CounterSnapshot, WriteCounters
from .sizes import format_size

logger = logging.getLogger(__name__)


@dataclass
class RateSample:
    elapsed_seconds: int
    file_rate: str
    write_rate: str
    total_bytes: int
    total_files: int
    samples_used: int

    def to_log_line(self) -> str:
        return (
            f"Elapsed:{self.elapsed_seconds:3d}s, "
            f"filesRate:{self.file_rate}, "
            f"writeRate:{self.write_rate}, "
            f"totalBytes:{format_size(self.total_bytes)}"
        )


class SampleWindow:
    """Bounded FIFO of counter snapshots; the oldest is evicted once full."""

    def __init__(self, capacity: int = STATS_WINDOW) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._samples: Deque[CounterSnapshot] = deque(maxlen=capacity)

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[CounterSnapshot]:
        return iter(self._samples)

    def oldest(self) -> Optional[CounterSnapshot]:
        return self._samples[0] if self._samples else None

    def append(self, sample: CounterSnapshot) -> None:
        self._samples.append(sample)


class StatsReporter:
    """Periodically logs rolling write and file rates.

    Rates are computed against the oldest snapshot in the window rather than
    the previous one, so they average over up to ``window`` intervals.
    """

    def __init__(
        self,
        counters: WriteCounters,
        token: CancellationToken,
        interval: float = STATS_INTERVAL,
        window: int = STATS_WINDOW,
        clock: Callable[[], float] = perf_counter,
    ) -> None:
        self.counters = counters
        self.token = token
        self.interval = interval
        self.window = SampleWindow(window)
        self.clock = clock
        self.last_sample: Optional[RateSample] = None

    def tick(self, elapsed_seconds: int = 0) -> RateSample:
        current = self.counters.snapshot()
        file_rate = RATE_UNAVAILABLE
        write_rate = RATE_UNAVAILABLE

        samples_used = len(self.window)
        baseline = self.window.oldest()
        if baseline is not None:
            byte_delta = current.written_bytes - baseline.written_bytes
            file_delta = current.written_files - baseline.written_files
            write_rate = f"{format_size(byte_delta // samples_used)}/s"
            file_rate = f"{file_delta * 60 // samples_used}/min"

        self.window.append(current)

        sample = RateSample(
            elapsed_seconds=elapsed_seconds,
            file_rate=file_rate,
            write_rate=write_rate,
            total_bytes=current.written_bytes,
            total_files=current.written_files,
            samples_used=samples_used,
        )
        self.last_sample = sample
        logger.info(sample.to_log_line())
        return sample

    async def run(self, initial_delay: Optional[float] = None) -> None:
        """Tick every ``interval`` seconds until the token is cancelled."""
        delay = self.interval if initial_delay is None else initial_delay
        if delay > 0:
            await asyncio.sleep(delay)

        started = self.clock()
        while not self.token.cancelled:
            tick_started = self.clock()
            self.tick(int(tick_started - started))
            spent = self.clock() - tick_started
            await asyncio.sleep(max(0.0, self.interval - spent))
