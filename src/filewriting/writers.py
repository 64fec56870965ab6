"""
Writer workers

Each worker fills randomly sized files in the target directory until the run
is cancelled. Two strategies are compared:

- ``StreamWriter`` writes through the buffered file object layer.
- ``MapWriter`` sizes the file first, maps it and copies into the mapping.

Both reuse one random payload generated at startup so the benchmark measures
I/O rather than the random number generator.
"""

from __future__ import annotations

import logging
import mmap
import os
import random
import uuid
from pathlib import Path
from typing import Optional

from .cancellation import CancellationToken
from .cli_errors import ConfigurationError, InvalidRange, WriteFailure
from .constants import STRATEGY_MEMORY_MAPS, STRATEGY_STREAMS, TMP_FILE_SUFFIX
from .counters import WriteCounters
from .sizes import format_size

logger = logging.getLogger(__name__)


def random_file_name() -> str:
    """Fresh 128-bit random file name."""
    return f"{uuid.uuid4().hex}{TMP_FILE_SUFFIX}"


class WriterWorker:
    """Base class for the write loop. Subclasses implement ``write_file``."""

    name = "writer"

    def __init__(
        self,
        min_size: int,
        max_size: int,
        directory: Path | str,
        counters: WriteCounters,
        rng: Optional[random.Random] = None,
    ) -> None:
        if min_size < 0 or max_size < 0:
            raise InvalidRange(f"Sizes must not be negative (min={min_size}, max={max_size})")
        if min_size >= max_size:
            raise InvalidRange(
                f"Minimum size {format_size(min_size)} must be below maximum size "
                f"{format_size(max_size)}"
            )
        self.min_size = min_size
        self.max_size = max_size
        self.directory = Path(directory)
        self.counters = counters
        self.rng = rng or random.Random()
        self.payload: Optional[memoryview] = None
        self.files_written = 0
        self.bytes_written = 0

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(minSize={format_size(self.min_size)}, "
            f"maxSize={format_size(self.max_size)})"
        )

    def prepare(self) -> None:
        """Generate the shared random payload once."""
        if self.payload is None:
            try:
                self.payload = memoryview(os.urandom(self.max_size))
            except (MemoryError, OverflowError) as exc:
                raise ConfigurationError(
                    f"Cannot allocate a {format_size(self.max_size)} payload: {exc!r}"
                ) from exc

    def next_size(self) -> int:
        return self.rng.randrange(self.min_size, self.max_size)

    def next_path(self) -> Path:
        return self.directory / random_file_name()

    def write_file(self, path: Path, size: int) -> None:
        raise NotImplementedError

    def run(self, token: CancellationToken) -> int:
        """
        Write files until ``token`` is cancelled.

        Cancellation is checked before each file, so a write in progress
        always completes. Any I/O error ends the loop with ``WriteFailure``.

        Returns:
            Number of files written by this worker
        """
        logger.info(f"Starting {self!r}")
        self.prepare()
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise WriteFailure(
                f"Cannot create {self.directory}: {exc}", path=str(self.directory)
            ) from exc

        while not token.cancelled:
            size = self.next_size()
            path = self.next_path()
            try:
                self.write_file(path, size)
            except (OSError, ValueError) as exc:
                raise WriteFailure(
                    f"{self.name} worker failed writing {format_size(size)} to {path}: {exc}",
                    path=str(path),
                ) from exc

            self.counters.record_write(size)
            self.files_written += 1
            self.bytes_written += size

        logger.debug(f"{type(self).__name__} stopped after {self.files_written} files")
        return self.files_written


class StreamWriter(WriterWorker):
    """Sequential writes through Python's buffered file objects."""

    name = STRATEGY_STREAMS

    def write_file(self, path: Path, size: int) -> None:
        # "x" refuses to overwrite an existing file
        with open(path, "xb") as output:
            output.write(self.payload[:size])


class MapWriter(WriterWorker):
    """Writes by sizing the file, mapping it fully and copying into the mapping."""

    name = STRATEGY_MEMORY_MAPS

    def write_file(self, path: Path, size: int) -> None:
        fd = os.open(path, os.O_RDWR | os.O_CREAT | os.O_EXCL | getattr(os, "O_BINARY", 0))
        try:
            if size == 0:
                # Zero-length mappings are not allowed; the empty file is the result
                return
            if hasattr(os, "posix_fallocate"):
                # Reserve real blocks; a sparse file would fault on a full volume mid-copy
                os.posix_fallocate(fd, 0, size)
            else:
                os.ftruncate(fd, size)
            with mmap.mmap(fd, size, access=mmap.ACCESS_WRITE) as mapping:
                mapping[:size] = self.payload[:size]
        finally:
            os.close(fd)
