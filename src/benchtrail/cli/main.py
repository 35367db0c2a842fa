"""Main CLI entry point for benchtrail.

This module defines the Typer application and all CLI commands.

Exit codes:
    0: Success (including an identical entry that was already recorded).
    1: Regression detected by ``check``.
    2: Invalid payload or arguments (fix the input).
    3: Storage failure (fix the infrastructure, then retry).
"""

from __future__ import annotations

import asyncio
import dataclasses
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any

import typer

from benchtrail import __version__
from benchtrail.core.config import Settings
from benchtrail.core.exceptions import (
    ConfigurationError,
    DuplicateExactRecord,
    StorageIOError,
    ValidationError,
)
from benchtrail.history import HistoryStore, store_for_path, validate_entries, validate_entry

if TYPE_CHECKING:
    from benchtrail.history import BenchmarkEntry

EXIT_REGRESSION = 1
EXIT_INVALID = 2
EXIT_STORAGE = 3

# Create the main Typer app
app = typer.Typer(
    name="benchtrail",
    help="benchtrail: Validate, store, and query continuous-benchmark histories.",
    add_completion=False,
    no_args_is_help=True,
)

# Global state for options
state: dict[str, Any] = {
    "json": False,
    "data": None,
}


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"benchtrail v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[  # noqa: ARG001
        bool | None,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output results in JSON format.",
        ),
    ] = False,
    data: Annotated[
        Path | None,
        typer.Option(
            "--data",
            "-d",
            help="History file (.js or .json). Defaults to BENCHTRAIL_DATA_PATH.",
        ),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Logging level (DEBUG, INFO, WARNING, ERROR).",
        ),
    ] = None,
) -> None:
    """benchtrail: Validate, store, and query continuous-benchmark histories."""
    settings = Settings()
    state["json"] = json_output
    state["data"] = data or settings.data_path
    state["settings"] = settings

    level_name = (log_level or settings.log_level).upper()
    logging.basicConfig(
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        level=getattr(logging, level_name, logging.WARNING),
        stream=sys.stderr,
    )


def _settings() -> Settings:
    settings: Settings | None = state.get("settings")
    return settings or Settings()


def _data_path() -> Path:
    return Path(state["data"] or _settings().data_path)


def _fail(message: str, code: int) -> typer.Exit:
    typer.echo(f"Error: {message}", err=True)
    return typer.Exit(code)


def _read_payload(file: Path) -> Any:
    """Read a JSON payload from a file, or stdin when the path is '-'."""
    try:
        content = sys.stdin.read() if str(file) == "-" else file.read_text(encoding="utf-8")
    except OSError as e:
        raise _fail(f"Cannot read {file}: {e}", EXIT_INVALID) from e
    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        raise _fail(f"Invalid JSON in {file}: {e}", EXIT_INVALID) from e


def _report_violations(error: ValidationError) -> typer.Exit:
    if state["json"]:
        payload = {
            "status": "invalid",
            "violations": [{"location": v.location, "message": v.message} for v in error.violations],
        }
        typer.echo(json.dumps(payload, indent=2))
    else:
        typer.echo(f"  Payload rejected ({len(error.violations)} violation(s)):", err=True)
        for violation in error.violations:
            typer.echo(f"    - {violation}", err=True)
    return typer.Exit(EXIT_INVALID)


def _validate_payload(payload: Any) -> list[BenchmarkEntry]:
    try:
        if isinstance(payload, list):
            return validate_entries(payload)
        return [validate_entry(payload)]
    except ValidationError as e:
        raise _report_violations(e) from e


def _open_history(repo_url: str | None = None) -> HistoryStore:
    backend = store_for_path(_data_path())
    try:
        return asyncio.run(HistoryStore.open(backend, repo_url=repo_url or _settings().repo_url or None))
    except StorageIOError as e:
        raise _fail(str(e), EXIT_STORAGE) from e


def _format_date(date_ms: int) -> str:
    return datetime.fromtimestamp(date_ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def _echo_entries(entries: list[BenchmarkEntry]) -> None:
    if state["json"]:
        typer.echo(json.dumps([e.to_dict() for e in entries], indent=2))
        return

    if not entries:
        typer.echo("  No entries.")
        return

    for entry in entries:
        typer.echo(f"  {entry.commit.id[:12]}  {_format_date(entry.date)}  {entry.tool}")
        for bench in entry.benches:
            typer.echo(f"      {bench.name}: {bench.value:g} {bench.unit}")


@app.command()
def version() -> None:
    """Show the current version."""
    typer.echo(f"benchtrail v{__version__}")


@app.command()
def validate(
    file: Annotated[Path, typer.Argument(help="JSON file with one entry or a list of entries ('-' for stdin).")],
) -> None:
    """Validate benchmark entries without storing them.

    Examples:
        benchtrail validate run.json
        cat run.json | benchtrail --json validate -
    """
    entries = _validate_payload(_read_payload(file))
    if state["json"]:
        typer.echo(json.dumps({"status": "valid", "entries": len(entries)}))
    else:
        typer.echo(f"  OK: {len(entries)} valid entr{'y' if len(entries) == 1 else 'ies'}")


@app.command()
def ingest(
    file: Annotated[Path, typer.Argument(help="JSON file with one entry or a list of entries ('-' for stdin).")],
    suite: Annotated[str, typer.Option("--suite", "-s", help="Suite to append to.")],
    repo_url: Annotated[
        str | None,
        typer.Option("--repo-url", help="Repository URL recorded in a new history file."),
    ] = None,
) -> None:
    """Validate benchmark entries and append them to a suite.

    Examples:
        benchtrail --data gh-pages/dev/bench/data.js ingest run.json --suite my-bench
    """
    entries = _validate_payload(_read_payload(file))
    history = _open_history(repo_url)
    try:
        history.check_order(suite, entries)
    except ValidationError as e:
        raise _report_violations(e) from e

    async def run_ingest() -> tuple[int, int]:
        appended = duplicates = 0
        for entry in entries:
            try:
                await history.append(suite, entry)
                appended += 1
            except DuplicateExactRecord:
                duplicates += 1
        return appended, duplicates

    try:
        appended, duplicates = asyncio.run(run_ingest())
    except ValidationError as e:
        raise _report_violations(e) from e
    except StorageIOError as e:
        raise _fail(str(e), EXIT_STORAGE) from e

    if state["json"]:
        typer.echo(json.dumps({"status": "ok", "suite": suite, "appended": appended, "duplicates": duplicates}))
    else:
        typer.echo(f"  Appended {appended} entr{'y' if appended == 1 else 'ies'} to '{suite}'")
        if duplicates:
            typer.echo(f"  Already recorded: {duplicates}")


@app.command()
def suites() -> None:
    """List suites in the history with their entry counts."""
    history = _open_history()
    counts = {suite: history.count(suite) for suite in history.suites()}
    if state["json"]:
        typer.echo(json.dumps(counts, indent=2))
        return
    if not counts:
        typer.echo("  No suites.")
    for suite, count in counts.items():
        typer.echo(f"  {suite}: {count} entries")


@app.command()
def latest(
    suite: Annotated[str, typer.Option("--suite", "-s", help="Suite to query.")],
    count: Annotated[int, typer.Option("--count", "-n", help="Number of entries.")] = 5,
) -> None:
    """Show the most recent entries of a suite."""
    _echo_entries(_open_history().latest(suite, count))


@app.command("range")
def range_(
    suite: Annotated[str, typer.Option("--suite", "-s", help="Suite to query.")],
    from_date: Annotated[int, typer.Option("--from", help="Start of range (epoch ms, inclusive).")] = 0,
    to_date: Annotated[
        int | None,
        typer.Option("--to", help="End of range (epoch ms, inclusive). Defaults to now."),
    ] = None,
) -> None:
    """Show entries of a suite recorded within a date range."""
    end = to_date if to_date is not None else int(datetime.now(tz=timezone.utc).timestamp() * 1000)
    _echo_entries(list(_open_history().query_range(suite, from_date, end)))


@app.command()
def commit(
    commit_id: Annotated[str, typer.Argument(help="Full commit hash.")],
    suite: Annotated[str, typer.Option("--suite", "-s", help="Suite to query.")],
) -> None:
    """Show every entry recorded for a commit."""
    _echo_entries(_open_history().query_by_commit(suite, commit_id))


@app.command()
def stats(
    suite: Annotated[str, typer.Option("--suite", "-s", help="Suite to query.")],
    bench: Annotated[str, typer.Option("--bench", "-b", help="Measurement name.")],
    window: Annotated[
        int | None,
        typer.Option("--window", "-w", help="Number of recent entries. Defaults to BENCHTRAIL_WINDOW_SIZE."),
    ] = None,
) -> None:
    """Show window statistics for one measurement."""
    from benchtrail.regression import RegressionDetector

    window_size = window if window is not None else _settings().window_size
    result = RegressionDetector(_open_history()).stats_for(suite, bench, window_size)

    if state["json"]:
        typer.echo(json.dumps(result.to_dict(), indent=2))
        return

    typer.echo(f"  {bench} over last {window_size} entries of '{suite}'")
    if not result.has_data:
        typer.echo("    No data.")
        return
    typer.echo(f"    Samples:  {result.sample_count}")
    typer.echo(f"    Mean:     {result.mean:.4f}")
    typer.echo(f"    Stddev:   {result.stddev:.4f}")
    typer.echo(f"    Min:      {result.min:g}")
    typer.echo(f"    Max:      {result.max:g}")


@app.command()
def check(
    file: Annotated[Path, typer.Argument(help="JSON file with the entry to check ('-' for stdin).")],
    suite: Annotated[str, typer.Option("--suite", "-s", help="Suite to compare against.")],
    window: Annotated[int | None, typer.Option("--window", "-w", help="Number of recent entries.")] = None,
    threshold: Annotated[
        float | None,
        typer.Option("--threshold", "-t", help="Allowed distance from the mean, in stddevs."),
    ] = None,
    policy: Annotated[
        Path | None,
        typer.Option("--policy", "-p", help="YAML file with regression thresholds."),
    ] = None,
) -> None:
    """Check a new entry against a suite's recent history.

    Exits with code 1 when a regression is detected.

    Examples:
        benchtrail check run.json --suite my-bench --threshold 3
        benchtrail check run.json --suite my-bench --policy regression.yaml
    """
    from benchtrail.regression import RegressionDetector, RegressionThresholds

    entries = _validate_payload(_read_payload(file))
    if len(entries) != 1:
        raise _fail("check expects exactly one entry", EXIT_INVALID)

    settings = _settings()
    try:
        if policy is not None:
            thresholds = RegressionThresholds.from_yaml(policy)
        else:
            thresholds = RegressionThresholds(
                window_size=settings.window_size,
                threshold_stddevs=settings.threshold_stddevs,
            )
        if threshold is not None:
            thresholds = dataclasses.replace(thresholds, threshold_stddevs=threshold)
    except (ConfigurationError, FileNotFoundError) as e:
        raise _fail(str(e), EXIT_INVALID) from e

    detector = RegressionDetector(_open_history(), thresholds)
    result = detector.check_entry(suite, entries[0], window_size=window)

    if state["json"]:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        typer.echo(result.summary())

    if result.has_regressions:
        raise typer.Exit(EXIT_REGRESSION)


if __name__ == "__main__":
    app()
