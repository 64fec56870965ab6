from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .cli_errors import ConfigurationError, InvalidRange
from .constants import STRATEGY_MEMORY_MAPS, STRATEGY_STREAMS
from .sizes import format_size, parse_size


@dataclass
class BenchmarkOptions:
    """Validated configuration for one benchmark run."""

    min_size: int
    max_size: int
    target_dir: Path
    memory_maps: bool = False
    file_streams: bool = False
    stop_after: Optional[float] = None

    def __post_init__(self) -> None:
        self.target_dir = Path(self.target_dir)
        if self.stop_after is not None and self.stop_after <= 0:
            self.stop_after = None
        self.validate()

    def validate(self) -> None:
        if not (self.memory_maps or self.file_streams):
            raise ConfigurationError(
                "No writer selected; enable --memorymaps and/or --filestreams"
            )
        if self.min_size < 0 or self.max_size < 0:
            raise InvalidRange("Sizes must not be negative")
        if self.min_size >= self.max_size:
            raise InvalidRange(
                f"--minsize ({format_size(self.min_size)}) must be smaller than "
                f"--maxsize ({format_size(self.max_size)})"
            )
        if self.max_size > sys.maxsize:
            raise InvalidRange(
                f"--maxsize ({format_size(self.max_size)}) is larger than an in-memory "
                "payload can be"
            )

    @property
    def strategies(self) -> List[str]:
        enabled = []
        if self.memory_maps:
            enabled.append(STRATEGY_MEMORY_MAPS)
        if self.file_streams:
            enabled.append(STRATEGY_STREAMS)
        return enabled

    @classmethod
    def from_cli(
        cls,
        *,
        min_size: str,
        max_size: str,
        target_dir: Path | str,
        memory_maps: bool = False,
        file_streams: bool = False,
        stop_after: Optional[float] = None,
    ) -> "BenchmarkOptions":
        """Build options from raw command line values.

        Raises:
            ConfigurationError: bad size literal, bad range, negative duration
                or no writer selected
        """
        if stop_after is not None and stop_after < 0:
            raise ConfigurationError(f"--stopafter must not be negative (got {stop_after})")
        return cls(
            min_size=parse_size(min_size),
            max_size=parse_size(max_size),
            target_dir=Path(target_dir),
            memory_maps=memory_maps,
            file_streams=file_streams,
            stop_after=stop_after,
        )
