"""
filewriting - sustained file-write throughput benchmark

Compares buffered stream writes with memory-mapped writes by filling a
temporary directory with randomly sized files and reporting rolling rates.
"""

__version__ = "1.0.0"


# Lazy imports so the size helpers load without the runner's dependencies
def __getattr__(name):
    """Lazy loading of package components to avoid unnecessary imports."""
    if name in ("parse_size", "format_size"):
        from . import sizes

        return getattr(sizes, name)
    elif name == "BenchmarkOptions":
        from .models import BenchmarkOptions

        return BenchmarkOptions
    elif name == "BenchmarkRunner":
        from .orchestrator import BenchmarkRunner

        return BenchmarkRunner
    elif name == "run_benchmark":
        from .orchestrator import run_benchmark

        return run_benchmark
    elif name == "AppSettings":
        from .config import AppSettings

        return AppSettings
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


# Define the public API of the package
__all__ = [
    "parse_size",
    "format_size",
    "BenchmarkOptions",
    "BenchmarkRunner",
    "run_benchmark",
    "AppSettings",
    "__version__",
]
