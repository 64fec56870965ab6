from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional


@dataclass
class StrategyTotals:
    """Files and bytes written by one writer strategy."""

    strategy: str
    files_written: int = 0
    bytes_written: int = 0


@dataclass
class RunSummary:
    """Captured results of a benchmark run."""

    total_seconds: float
    written_bytes: int = 0
    written_files: int = 0
    strategies: List[StrategyTotals] = field(default_factory=list)
    stop_reason: Optional[str] = None
    files_removed: int = 0
    cleanup_failures: int = 0
    last_write_rate: Optional[str] = None

    @property
    def bytes_per_second(self) -> float:
        """Average write throughput over the whole run."""
        if self.total_seconds <= 0:
            return 0.0
        return self.written_bytes / self.total_seconds

    @property
    def files_per_minute(self) -> float:
        if self.total_seconds <= 0:
            return 0.0
        return self.written_files * 60 / self.total_seconds

    def to_dict(self) -> Dict[str, object]:
        """Serialize summary to a dictionary."""
        data = asdict(self)
        data["bytes_per_second"] = self.bytes_per_second
        data["files_per_minute"] = self.files_per_minute
        return data
