import asyncio
import inspect
import logging
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from filewriting.config import AppSettings  # noqa: E402
from filewriting.counters import WriteCounters  # noqa: E402


def pytest_configure(config):
    """Register compatibility markers and defaults."""

    config.addinivalue_line("markers", "asyncio: mark a test as requiring the event loop")


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem):
    """Execute ``async`` tests using a minimal event loop implementation."""

    testfunction = pyfuncitem.obj
    if not inspect.iscoroutinefunction(testfunction):
        return None

    signature = inspect.signature(testfunction)
    call_args = {
        name: value for name, value in pyfuncitem.funcargs.items() if name in signature.parameters
    }

    loop = asyncio.new_event_loop()
    try:
        asyncio.set_event_loop(loop)
        loop.run_until_complete(testfunction(**call_args))
        loop.run_until_complete(loop.shutdown_asyncgens())
    finally:
        asyncio.set_event_loop(None)
        loop.close()

    return True


@pytest.fixture(autouse=True)
def restore_root_logging():
    """The CLI reconfigures the root logger; put the previous handlers back."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def target_dir(tmp_path: Path) -> Path:
    """Directory the writers fill during a test."""
    directory = tmp_path / "FileWriting"
    directory.mkdir()
    return directory


@pytest.fixture
def counters() -> WriteCounters:
    return WriteCounters()


@pytest.fixture
def fast_settings() -> AppSettings:
    """Settings with a short reporter interval so runs end quickly."""
    settings = AppSettings()
    settings.STATS_INTERVAL = 0.05
    settings.STATS_WINDOW = 60
    settings.DRAIN_TIMEOUT = 5.0
    return settings
