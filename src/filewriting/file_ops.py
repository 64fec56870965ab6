"""
File operations for the benchmark target directory

The writer workers are blocking loops, so they run on a dedicated thread pool
while the asyncio side of the runner (stats reporter, timeout, fan-in wait)
keeps going on the event loop. Shutdown cleanup runs on the loop's default
executor once the worker pool has been shut down.

Cleanup is directory based: every file found in the target directory is
removed, whichever worker (or earlier run) created it.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .cli_errors import CleanupFailure

logger = logging.getLogger(__name__)


def ensure_directory(path: Path | str) -> Path:
    """Ensure ``path`` exists on disk and return it as a ``Path``."""

    directory = Path(path)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def create_worker_pool(workers: int) -> ThreadPoolExecutor:
    """Thread pool for the blocking writer loops, one thread per worker."""
    if workers < 1:
        raise ValueError("workers must be at least 1")
    return ThreadPoolExecutor(max_workers=workers, thread_name_prefix="filewriting-worker")


@dataclass
class CleanupReport:
    removed: int = 0
    failures: List[CleanupFailure] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)


def clear_directory(directory: Path | str) -> CleanupReport:
    """
    Delete every file in ``directory``

    Best effort: a file that cannot be removed is logged and counted, and
    the remaining files are still processed. A missing directory means there
    is nothing to clean.
    """
    dir_path = Path(directory)
    report = CleanupReport()

    if not dir_path.exists():
        logger.debug(f"Nothing to clean, {dir_path} does not exist")
        return report

    for entry in dir_path.iterdir():
        if not entry.is_file():
            continue
        try:
            entry.unlink()
            report.removed += 1
        except FileNotFoundError:
            # Already gone
            continue
        except OSError as exc:
            failure = CleanupFailure(f"Failed to delete {entry}: {exc}", path=str(entry))
            logger.warning(failure.message)
            report.failures.append(failure)

    return report


async def clear_directory_async(
    directory: Path | str, executor: Optional[Executor] = None
) -> CleanupReport:
    """Run ``clear_directory`` off the event loop."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(executor, clear_directory, directory)
