"""Centralized constants for all modules."""

# Size units, in order of their 1024 exponent
SIZE_UNITS = ["b", "kb", "mb", "gb", "tb"]
SIZE_UNIT_ALIASES = {"bytes": "b"}

# Display units for formatted sizes, largest first
DISPLAY_UNITS = ["GB", "MB", "KB"]
BYTES_LABEL = "Bytes"
SIZE_SCALE = 1024

# CLI defaults
DEFAULT_MIN_SIZE = "1B"
DEFAULT_MAX_SIZE = "10MB"
DEFAULT_STOP_AFTER = 0  # seconds; 0 runs until stopped

# Target folder under the platform temp directory
TMP_FOLDER_NAME = "FileWriting"
TMP_FILE_SUFFIX = ".tmp"

# Stats reporter
STATS_INTERVAL = 1.0  # seconds
STATS_WINDOW = 60  # samples
RATE_UNAVAILABLE = "N/A"

# Shutdown
DRAIN_TIMEOUT = 5.0  # seconds

# Worker strategy names
STRATEGY_STREAMS = "streams"
STRATEGY_MEMORY_MAPS = "memorymaps"
