from __future__ import annotations

from pathlib import Path

import click
from rich.console import Console

from . import __version__
from .config import AppSettings
from .constants import DEFAULT_MAX_SIZE, DEFAULT_MIN_SIZE, DEFAULT_STOP_AFTER
from .logging_config import setup_logging
from .cli_errors import handle_cli_errors
from .models import BenchmarkOptions
from .orchestrator import run_benchmark
from .performance import RunSummary
from .sizes import format_size

console = Console()
config = AppSettings()


def _display_metrics(summary: RunSummary) -> None:
    console.print("\n[cyan]Run summary[/cyan]")
    console.print(f"- Total time: {summary.total_seconds:.2f}s")
    console.print(f"- Stopped by: {summary.stop_reason}")
    console.print(f"- Files written: {summary.written_files}")
    console.print(f"- Bytes written: {format_size(summary.written_bytes)}")
    console.print(f"- Write rate: {format_size(int(summary.bytes_per_second))}/s")
    console.print(f"- Files rate: {summary.files_per_minute:.0f}/min")
    if summary.last_write_rate:
        console.print(f"- Last window rate: {summary.last_write_rate}")
    for totals in summary.strategies:
        console.print(
            f"- {totals.strategy}: {totals.files_written} files, "
            f"{format_size(totals.bytes_written)}"
        )
    console.print(f"- Files removed: {summary.files_removed}")
    if summary.cleanup_failures:
        console.print(f"- [yellow]Files not removed: {summary.cleanup_failures}[/yellow]")


@click.command()
@click.version_option(version=__version__)
@click.option("--memorymaps", is_flag=True, help="Use memory mapped files.")
@click.option("--filestreams", is_flag=True, help="Use file streams.")
@click.option("--minsize", default=DEFAULT_MIN_SIZE, show_default=True, help="Minimum file size.")
@click.option("--maxsize", default=DEFAULT_MAX_SIZE, show_default=True, help="Maximum file size.")
@click.option(
    "--stopafter",
    type=click.FloatRange(min=0),
    default=DEFAULT_STOP_AFTER,
    show_default=True,
    help="Stop after this many seconds (0 runs until stopped).",
)
@click.option(
    "--target-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory to write into (default: <tempdir>/FileWriting). It is emptied on exit.",
)
@click.option(
    "--keyboard/--no-keyboard",
    default=True,
    help="Stop the run when Enter is pressed.",
)
@click.option("--log-level", default=config.LOG_LEVEL, show_default=True)
@click.option("--log-file", type=click.Path(dir_okay=False), default=config.LOG_FILE)
@click.option("--show-metrics", is_flag=True, help="Print a summary after the run.")
@handle_cli_errors(context="File writing benchmark")
def cli(
    memorymaps: bool,
    filestreams: bool,
    minsize: str,
    maxsize: str,
    stopafter: float,
    target_dir: Path | None,
    keyboard: bool,
    log_level: str,
    log_file: str | None,
    show_metrics: bool,
) -> None:
    """
    Benchmark sustained file writes with file streams and/or memory maps.

    Writes randomly sized files until Enter, Ctrl-C or --stopafter, logging
    rolling write and file rates every second.
    """
    setup_logging(log_level, log_file=log_file, format_style=config.LOG_FORMAT)

    options = BenchmarkOptions.from_cli(
        min_size=minsize,
        max_size=maxsize,
        target_dir=target_dir or config.default_target_dir(),
        memory_maps=memorymaps,
        file_streams=filestreams,
        stop_after=stopafter,
    )

    summary = run_benchmark(
        options,
        config,
        keyboard=click.get_text_stream("stdin") if keyboard else None,
    )

    if show_metrics:
        _display_metrics(summary)


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":  # pragma: no cover - module execution convenience
    main()
