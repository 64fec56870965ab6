import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from . import constants


@dataclass
class AppSettings:
    """Centralized configuration for benchmark runs"""

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: Optional[str] = os.getenv("LOG_FILE") or None
    LOG_FORMAT = os.getenv("LOG_FORMAT", "detailed")

    # Target directory
    TMP_FOLDER_NAME = os.getenv("TMP_FOLDER_NAME", constants.TMP_FOLDER_NAME)

    # Stats reporter cadence and rolling window size
    STATS_INTERVAL: float = float(os.getenv("STATS_INTERVAL", str(constants.STATS_INTERVAL)))
    STATS_WINDOW: int = int(os.getenv("STATS_WINDOW", str(constants.STATS_WINDOW)))

    # How long to wait for workers before warning during shutdown
    DRAIN_TIMEOUT: float = float(os.getenv("DRAIN_TIMEOUT", str(constants.DRAIN_TIMEOUT)))

    def default_target_dir(self) -> Path:
        return Path(tempfile.gettempdir()) / self.TMP_FOLDER_NAME
