"""
Benchmark orchestration

A run moves through ``STARTING -> RUNNING -> DRAINING -> CLEANUP -> EXITED``.
While running, every task shares one ``CancellationToken``:

- one thread per enabled writer worker (blocking write loops)
- the stats reporter and the optional stop-after timer (asyncio tasks)
- a daemon thread waiting for Enter on the keyboard stream
- SIGINT/SIGTERM handlers

Whichever finishes first ends the run. The token is then cancelled, the
workers finish their current file, and the target directory is emptied.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import threading
from datetime import timedelta
from enum import Enum
from time import perf_counter
from typing import Any, Callable, Iterable, List, Optional, TextIO

from .cancellation import CancellationToken
from .config import AppSettings
from .counters import WriteCounters
from .environment import describe_environment, format_environment
from .file_ops import CleanupReport, clear_directory_async, create_worker_pool, ensure_directory
from .models import BenchmarkOptions
from .performance import RunSummary, StrategyTotals
from .stats import StatsReporter
from .writers import MapWriter, StreamWriter, WriterWorker

logger = logging.getLogger(__name__)


class RunState(Enum):
    STARTING = "STARTING"
    RUNNING = "RUNNING"
    DRAINING = "DRAINING"
    CLEANUP = "CLEANUP"
    EXITED = "EXITED"


def _read_line(stream: TextIO) -> str:
    try:
        fd = stream.fileno()
    except (AttributeError, OSError, ValueError):
        return stream.readline()
    # Raw read: a daemon thread must not hold the buffered reader's lock at exit
    return os.read(fd, 1024).decode(errors="replace")


def start_keyboard_listener(token: CancellationToken, stream: TextIO) -> threading.Thread:
    """Cancel ``token`` when a line arrives on ``stream``.

    End of input means there is no keyboard attached; the run keeps going.
    """

    def listen() -> None:
        try:
            line = _read_line(stream)
        except (OSError, ValueError) as exc:
            logger.debug(f"Keyboard input unavailable: {exc}")
            return
        if not line:
            logger.debug("Keyboard input closed, Enter will not stop the run")
            return
        token.cancel("keypress")

    thread = threading.Thread(target=listen, name="filewriting-keyboard", daemon=True)
    thread.start()
    return thread


async def stop_after(token: CancellationToken, seconds: float) -> None:
    logger.info(f"Starting timeout (timeout={timedelta(seconds=seconds)})")
    await asyncio.sleep(seconds)
    token.cancel("timeout")


def _cancellation_future(
    token: CancellationToken, loop: asyncio.AbstractEventLoop
) -> "asyncio.Future[Optional[str]]":
    future: "asyncio.Future[Optional[str]]" = loop.create_future()

    def resolve() -> None:
        if not future.done():
            future.set_result(token.reason)

    token.add_callback(lambda: loop.call_soon_threadsafe(resolve))
    return future


def _first_error(futures: Iterable["asyncio.Future[Any]"]) -> Optional[BaseException]:
    """First exception among finished futures. Marks every exception as retrieved."""
    first = None
    for future in futures:
        if not future.done() or future.cancelled():
            continue
        exc = future.exception()
        if exc is not None and first is None:
            first = exc
    return first


class BenchmarkRunner:
    """Runs the writer workers and the stats reporter until something stops them."""

    def __init__(
        self,
        options: BenchmarkOptions,
        settings: Optional[AppSettings] = None,
        *,
        counters: Optional[WriteCounters] = None,
        keyboard: Optional[TextIO] = None,
        install_signal_handlers: bool = True,
    ) -> None:
        self.options = options
        self.settings = settings or AppSettings()
        self.counters = counters or WriteCounters()
        self.keyboard = keyboard
        self.install_signal_handlers = install_signal_handlers
        self.token = CancellationToken()
        self.reporter = StatsReporter(
            self.counters,
            self.token,
            interval=self.settings.STATS_INTERVAL,
            window=self.settings.STATS_WINDOW,
        )
        self.workers: List[WriterWorker] = []
        self.state = RunState.STARTING
        self.cleanup_report = CleanupReport()

    def _set_state(self, state: RunState) -> None:
        logger.debug(f"Run state {self.state.value} -> {state.value}")
        self.state = state

    def build_workers(self) -> List[WriterWorker]:
        workers: List[WriterWorker] = []
        args = (self.options.min_size, self.options.max_size, self.options.target_dir, self.counters)
        if self.options.memory_maps:
            workers.append(MapWriter(*args))
        if self.options.file_streams:
            workers.append(StreamWriter(*args))
        return workers

    def _install_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> List[Callable[[], None]]:
        """Route SIGINT/SIGTERM to the token. Returns callables that undo it."""
        restorers: List[Callable[[], None]] = []
        for name in ("SIGINT", "SIGTERM"):
            sig = getattr(signal, name, None)
            if sig is None:
                continue
            reason = f"signal {name}"
            try:
                loop.add_signal_handler(sig, self.token.cancel, reason)
                restorers.append(lambda sig=sig: loop.remove_signal_handler(sig))
            except NotImplementedError:
                # Loops without signal support, e.g. on Windows
                previous = signal.signal(sig, lambda signum, frame, r=reason: self.token.cancel(r))
                restorers.append(lambda sig=sig, prev=previous: signal.signal(sig, prev))
            except RuntimeError as exc:
                logger.debug(f"Cannot handle {name} here: {exc}")
        return restorers

    async def _drain(self, futures: List["asyncio.Future[Any]"]) -> None:
        pending = [future for future in futures if not future.done()]
        if not pending:
            return
        _, still_running = await asyncio.wait(pending, timeout=self.settings.DRAIN_TIMEOUT)
        if still_running:
            logger.warning(
                f"Waiting for {len(still_running)} task(s) to finish their current write"
            )
            await asyncio.wait(still_running)

    async def run(self) -> RunSummary:
        """
        Run the benchmark to completion.

        Returns:
            Summary of what was written

        Raises:
            ConfigurationError: the random payload cannot be allocated; nothing
                was started
            WriteFailure: a worker hit an I/O error; the run was stopped and
                cleaned up before re-raising
        """
        loop = asyncio.get_running_loop()
        started = perf_counter()
        error: Optional[BaseException] = None

        self._set_state(RunState.STARTING)
        target = ensure_directory(self.options.target_dir)
        logger.info(format_environment(describe_environment(target)))
        self.workers = self.build_workers()
        for worker in self.workers:
            worker.prepare()

        restorers = self._install_signal_handlers(loop) if self.install_signal_handlers else []
        pool = create_worker_pool(len(self.workers))
        try:
            self._set_state(RunState.RUNNING)
            if self.keyboard is not None:
                start_keyboard_listener(self.token, self.keyboard)
                logger.info("Press Enter to stop")

            worker_futures = [
                loop.run_in_executor(pool, worker.run, self.token) for worker in self.workers
            ]
            reporter_task = asyncio.create_task(self.reporter.run())
            watchers: List["asyncio.Future[Any]"] = [_cancellation_future(self.token, loop)]
            if self.options.stop_after:
                watchers.append(asyncio.create_task(stop_after(self.token, self.options.stop_after)))

            tasks = [*worker_futures, reporter_task, *watchers]
            done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
            error = _first_error(done)

            self._set_state(RunState.DRAINING)
            self.token.cancel("failure" if error else "stopped")
            # The reporter may be asleep for a whole interval
            reporter_task.cancel()
            for watcher in watchers:
                watcher.cancel()
            await self._drain([*worker_futures, reporter_task])
            error = error or _first_error([*worker_futures, reporter_task])
        finally:
            self.token.cancel("shutdown")
            pool.shutdown(wait=True)
            for restore in restorers:
                restore()

            self._set_state(RunState.CLEANUP)
            logger.info("Cleaning up files.")
            self.cleanup_report = await clear_directory_async(target)
            logger.info(f"Removed {self.cleanup_report.removed} file(s) from {target}")
            if self.cleanup_report.failed:
                logger.warning(f"{self.cleanup_report.failed} file(s) could not be deleted")
            self._set_state(RunState.EXITED)

        if error is not None:
            logger.error(f"Run stopped by error: {error}")
            raise error

        logger.info(f"Run stopped ({self.token.reason})")
        summary = self.summary(perf_counter() - started)
        logger.debug(f"Run summary: {summary.to_dict()}")
        return summary

    def summary(self, total_seconds: float) -> RunSummary:
        snapshot = self.counters.snapshot()
        last = self.reporter.last_sample
        return RunSummary(
            total_seconds=total_seconds,
            written_bytes=snapshot.written_bytes,
            written_files=snapshot.written_files,
            strategies=[
                StrategyTotals(worker.name, worker.files_written, worker.bytes_written)
                for worker in self.workers
            ],
            stop_reason=self.token.reason,
            files_removed=self.cleanup_report.removed,
            cleanup_failures=self.cleanup_report.failed,
            last_write_rate=last.write_rate if last else None,
        )


def run_benchmark(
    options: BenchmarkOptions,
    settings: Optional[AppSettings] = None,
    *,
    keyboard: Optional[TextIO] = None,
    install_signal_handlers: bool = True,
) -> RunSummary:
    """Synchronous entry point used by the CLI."""
    runner = BenchmarkRunner(
        options,
        settings,
        keyboard=keyboard,
        install_signal_handlers=install_signal_handlers,
    )
    return asyncio.run(runner.run())
