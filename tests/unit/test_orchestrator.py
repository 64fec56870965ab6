import asyncio
import io
import logging
import time
from pathlib import Path

import pytest

from filewriting.cancellation import CancellationToken
from filewriting.cli_errors import ConfigurationError, WriteFailure
from filewriting.models import BenchmarkOptions
from filewriting.orchestrator import (
    BenchmarkRunner,
    RunState,
    _read_line,
    run_benchmark,
    start_keyboard_listener,
    stop_after,
)
from filewriting.writers import MapWriter, StreamWriter

pytestmark = pytest.mark.asyncio


def _options(target_dir: Path, **overrides) -> BenchmarkOptions:
    values = dict(
        min_size=1,
        max_size=100,
        target_dir=target_dir,
        file_streams=True,
        memory_maps=False,
        stop_after=0.3,
    )
    values.update(overrides)
    return BenchmarkOptions(**values)


def _runner(options, settings, **kwargs) -> BenchmarkRunner:
    kwargs.setdefault("install_signal_handlers", False)
    return BenchmarkRunner(options, settings, **kwargs)


async def test_timeout_stops_run_and_cleans_up(target_dir, fast_settings):
    (target_dir / "stale-from-earlier-run.tmp").write_bytes(b"old")
    runner = _runner(_options(target_dir, memory_maps=True), fast_settings)

    summary = await runner.run()

    assert runner.state is RunState.EXITED
    assert summary.stop_reason == "timeout"
    assert summary.written_files > 0
    assert summary.written_files == sum(s.files_written for s in summary.strategies)
    assert summary.written_bytes == sum(s.bytes_written for s in summary.strategies)
    assert {s.strategy for s in summary.strategies} == {"memorymaps", "streams"}
    # Every file is removed, including ones this run did not create
    assert list(target_dir.iterdir()) == []
    assert summary.files_removed == summary.written_files + 1
    assert runner.reporter.last_sample is not None
    assert summary.last_write_rate == runner.reporter.last_sample.write_rate


async def test_build_workers_follows_options(target_dir, fast_settings):
    maps_only = _runner(_options(target_dir, file_streams=False, memory_maps=True), fast_settings)
    both = _runner(_options(target_dir, memory_maps=True), fast_settings)

    assert [type(w) for w in maps_only.build_workers()] == [MapWriter]
    assert [type(w) for w in both.build_workers()] == [MapWriter, StreamWriter]


async def test_keypress_stops_run(target_dir, fast_settings):
    runner = _runner(
        _options(target_dir, stop_after=None),
        fast_settings,
        keyboard=io.StringIO("\n"),
    )

    summary = await asyncio.wait_for(runner.run(), timeout=10)

    assert summary.stop_reason == "keypress"
    assert list(target_dir.iterdir()) == []


async def test_external_cancellation_stops_run(target_dir, fast_settings):
    runner = _runner(_options(target_dir, stop_after=None), fast_settings)
    loop = asyncio.get_running_loop()
    loop.call_later(0.2, runner.token.cancel, "signal SIGINT")

    summary = await asyncio.wait_for(runner.run(), timeout=10)

    assert summary.stop_reason == "signal SIGINT"
    assert summary.written_files > 0
    assert list(target_dir.iterdir()) == []


async def test_worker_failure_stops_run_and_propagates(target_dir, fast_settings, monkeypatch):
    def failing_write(self, path, size):
        path.write_bytes(b"partial")
        raise OSError(28, "No space left on device")

    monkeypatch.setattr(StreamWriter, "write_file", failing_write)
    runner = _runner(_options(target_dir, memory_maps=True, stop_after=None), fast_settings)

    with pytest.raises(WriteFailure, match="No space left"):
        await asyncio.wait_for(runner.run(), timeout=10)

    assert runner.token.reason == "failure"
    assert runner.state is RunState.EXITED
    assert list(target_dir.iterdir()) == []


async def test_cleanup_failures_are_not_fatal(target_dir, fast_settings, monkeypatch, caplog):
    from filewriting import file_ops

    original_unlink = Path.unlink
    kept = []

    def refuse_first(self, *args, **kwargs):
        if not kept:
            kept.append(self)
            raise PermissionError("locked")
        return original_unlink(self, *args, **kwargs)

    monkeypatch.setattr(file_ops.Path, "unlink", refuse_first)
    runner = _runner(_options(target_dir, stop_after=0.2), fast_settings)

    with caplog.at_level(logging.WARNING):
        summary = await runner.run()

    assert summary.cleanup_failures == 1
    assert [p for p in target_dir.iterdir()] == kept
    assert "could not be deleted" in caplog.text


async def test_signal_handlers_are_installed_and_removed(target_dir, fast_settings):
    runner = BenchmarkRunner(_options(target_dir, stop_after=None), fast_settings)
    loop = asyncio.get_running_loop()
    restorers = runner._install_signal_handlers(loop)
    try:
        assert restorers
    finally:
        for restore in restorers:
            restore()


async def test_stop_after_cancels_token():
    token = CancellationToken()

    await stop_after(token, 0.01)

    assert token.reason == "timeout"


def test_keyboard_listener_cancels_on_enter():
    token = CancellationToken()

    thread = start_keyboard_listener(token, io.StringIO("\n"))
    thread.join(timeout=5)

    assert token.reason == "keypress"
    assert thread.daemon


def test_keyboard_listener_ignores_end_of_input():
    token = CancellationToken()

    thread = start_keyboard_listener(token, io.StringIO(""))
    thread.join(timeout=5)

    assert not thread.is_alive()
    assert not token.cancelled


def test_read_line_prefers_raw_descriptor(tmp_path):
    source = tmp_path / "stdin.txt"
    source.write_text("go\n")
    with open(source) as stream:
        assert _read_line(stream) == "go\n"
    assert _read_line(io.StringIO("typed\n")) == "typed\n"


def test_run_benchmark_sync_entry_point(target_dir, fast_settings):
    summary = run_benchmark(
        _options(target_dir, stop_after=0.2),
        fast_settings,
        install_signal_handlers=False,
    )

    assert summary.stop_reason == "timeout"
    assert list(target_dir.iterdir()) == []


async def test_slow_reporter_does_not_delay_shutdown(target_dir, fast_settings):
    fast_settings.STATS_INTERVAL = 30.0
    runner = _runner(_options(target_dir, stop_after=0.2), fast_settings)

    started = time.monotonic()
    summary = await asyncio.wait_for(runner.run(), timeout=10)

    assert time.monotonic() - started < 5
    assert summary.stop_reason == "timeout"
    assert runner.reporter.last_sample is None
    assert list(target_dir.iterdir()) == []


async def test_payload_allocation_failure_stops_before_writing(
    target_dir, fast_settings, monkeypatch
):
    def refuse(size):
        raise MemoryError()

    monkeypatch.setattr("filewriting.writers.os.urandom", refuse)
    runner = _runner(_options(target_dir, stop_after=None), fast_settings)

    with pytest.raises(ConfigurationError, match="payload"):
        await asyncio.wait_for(runner.run(), timeout=10)

    assert runner.state is RunState.STARTING
    assert list(target_dir.iterdir()) == []
