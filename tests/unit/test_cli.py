"""Tests for CLI commands."""

from __future__ import annotations

import json
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

from benchtrail import __version__
from benchtrail.cli.main import app

# Disable rich/typer color output to avoid ANSI escape codes in test assertions
os.environ["NO_COLOR"] = "1"
os.environ["TERM"] = "dumb"

runner = CliRunner()

PayloadFactory = Callable[..., dict[str, Any]]

# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def data_path(tmp_path: Path) -> Path:
    """Location of the history file under test."""
    return tmp_path / "bench" / "data.js"


@pytest.fixture
def write_payload(tmp_path: Path) -> Callable[[Any, str], Path]:
    """Write a JSON payload to a file and return its path."""

    def _write(payload: Any, name: str = "run.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(payload))
        return path

    return _write


@pytest.fixture
def populated(
    data_path: Path,
    entry_payload: PayloadFactory,
    write_payload: Callable[[Any, str], Path],
) -> Path:
    """A history with values 10, 10, 30 for bench "x" in suite "bench-A"."""
    payloads = [
        entry_payload(commit_id=f"{i + 1:040x}", date=(i + 1) * 100, benches={"x": value})
        for i, value in enumerate([10, 10, 30])
    ]
    path = write_payload(payloads, "history.json")
    result = runner.invoke(app, ["--data", str(data_path), "ingest", str(path), "--suite", "bench-A"])
    assert result.exit_code == 0, result.output
    return data_path


# ============================================================================
# Version Tests
# ============================================================================


class TestVersionCommand:
    """Tests for version command."""

    def test_version_command(self) -> None:
        """Version command shows version."""
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_version_flag(self) -> None:
        """--version flag shows version and exits."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.stdout


# ============================================================================
# Validate Tests
# ============================================================================


class TestValidateCommand:
    """Tests for validate command."""

    def test_valid(self, sample_payload: dict[str, Any], write_payload: Callable[[Any, str], Path]) -> None:
        """A valid entry passes."""
        result = runner.invoke(app, ["validate", str(write_payload(sample_payload, "run.json"))])

        assert result.exit_code == 0
        assert "OK: 1 valid entry" in result.stdout

    def test_invalid_lists_every_violation(
        self, sample_payload: dict[str, Any], write_payload: Callable[[Any, str], Path]
    ) -> None:
        """All violations are reported and the exit code is 2."""
        sample_payload["date"] = -5
        sample_payload["benches"][0]["unit"] = ""

        result = runner.invoke(app, ["validate", str(write_payload(sample_payload, "run.json"))])

        assert result.exit_code == 2
        assert "2 violation(s)" in result.output
        assert "date:" in result.output
        assert "benches.0.unit:" in result.output

    def test_invalid_json_output(
        self, sample_payload: dict[str, Any], write_payload: Callable[[Any, str], Path]
    ) -> None:
        """--json reports violations as JSON."""
        del sample_payload["tool"]

        result = runner.invoke(app, ["--json", "validate", str(write_payload(sample_payload, "run.json"))])

        assert result.exit_code == 2
        data = json.loads(result.stdout)
        assert data["status"] == "invalid"
        assert data["violations"][0]["location"] == "tool"

    def test_malformed_json(self, tmp_path: Path) -> None:
        """A file that isn't JSON is an input error."""
        path = tmp_path / "run.json"
        path.write_text("{oops")

        result = runner.invoke(app, ["validate", str(path)])

        assert result.exit_code == 2
        assert "Invalid JSON" in result.output


# ============================================================================
# Ingest Tests
# ============================================================================


class TestIngestCommand:
    """Tests for ingest command."""

    def test_ingest_creates_data_js(
        self,
        data_path: Path,
        sample_payload: dict[str, Any],
        write_payload: Callable[[Any, str], Path],
    ) -> None:
        """Ingest writes the dashboard data file."""
        result = runner.invoke(
            app,
            [
                "--data",
                str(data_path),
                "ingest",
                str(write_payload(sample_payload, "run.json")),
                "--suite",
                "statement-distribution-regression-bench",
                "--repo-url",
                "https://github.com/example/project",
            ],
        )

        assert result.exit_code == 0, result.output
        assert "Appended 1 entry" in result.stdout
        content = data_path.read_text()
        assert content.startswith("window.BENCHMARK_DATA = ")
        data = json.loads(content[len("window.BENCHMARK_DATA = ") :])
        assert data["repoUrl"] == "https://github.com/example/project"
        assert data["entries"]["statement-distribution-regression-bench"] == [sample_payload]

    def test_ingest_duplicate_is_not_an_error(
        self,
        data_path: Path,
        sample_payload: dict[str, Any],
        write_payload: Callable[[Any, str], Path],
    ) -> None:
        """Re-posting the same entry succeeds without writing it again."""
        path = str(write_payload(sample_payload, "run.json"))
        runner.invoke(app, ["--data", str(data_path), "ingest", path, "--suite", "bench-A"])

        result = runner.invoke(app, ["--data", str(data_path), "--json", "ingest", path, "--suite", "bench-A"])

        assert result.exit_code == 0
        assert '"duplicates": 1' in result.stdout
        assert '"appended": 0' in result.stdout

    def test_ingest_invalid_writes_nothing(
        self,
        data_path: Path,
        sample_payload: dict[str, Any],
        write_payload: Callable[[Any, str], Path],
    ) -> None:
        """Invalid payloads never reach the store."""
        sample_payload["benches"] = []

        result = runner.invoke(
            app,
            ["--data", str(data_path), "ingest", str(write_payload(sample_payload, "run.json")), "--suite", "s"],
        )

        assert result.exit_code == 2
        assert not data_path.exists()

    def test_ingest_out_of_order(
        self,
        populated: Path,
        entry_payload: PayloadFactory,
        write_payload: Callable[[Any, str], Path],
    ) -> None:
        """Entries older than the suite's latest are rejected as invalid input."""
        path = write_payload(entry_payload(commit_id="e" * 40, date=50), "old.json")

        result = runner.invoke(app, ["--data", str(populated), "ingest", str(path), "--suite", "bench-A"])

        assert result.exit_code == 2

    def test_ingest_unsorted_batch_writes_nothing(
        self,
        data_path: Path,
        entry_payload: PayloadFactory,
        write_payload: Callable[[Any, str], Path],
    ) -> None:
        """A batch that goes back in time is rejected before anything is stored."""
        payloads = [
            entry_payload(commit_id="1" * 40, date=300),
            entry_payload(commit_id="2" * 40, date=100),
        ]
        path = write_payload(payloads, "batch.json")

        result = runner.invoke(app, ["--data", str(data_path), "--json", "ingest", str(path), "--suite", "s"])

        assert result.exit_code == 2
        data = json.loads(result.stdout)
        assert data["status"] == "invalid"
        assert data["violations"][0]["location"] == "date"
        assert not data_path.exists()

    def test_ingest_corrupt_history(
        self,
        data_path: Path,
        sample_payload: dict[str, Any],
        write_payload: Callable[[Any, str], Path],
    ) -> None:
        """Storage failures exit with code 3."""
        data_path.parent.mkdir(parents=True)
        data_path.write_text("window.BENCHMARK_DATA = {broken")

        result = runner.invoke(
            app,
            ["--data", str(data_path), "ingest", str(write_payload(sample_payload, "run.json")), "--suite", "s"],
        )

        assert result.exit_code == 3
        assert "Storage load failed" in result.output


# ============================================================================
# Query Tests
# ============================================================================


class TestQueryCommands:
    """Tests for suites, latest, range and commit commands."""

    def test_suites(self, populated: Path) -> None:
        """suites lists suites with entry counts."""
        result = runner.invoke(app, ["--data", str(populated), "--json", "suites"])

        assert result.exit_code == 0
        assert json.loads(result.stdout) == {"bench-A": 3}

    def test_latest(self, populated: Path) -> None:
        """latest returns the most recent entries."""
        result = runner.invoke(app, ["--data", str(populated), "--json", "latest", "--suite", "bench-A", "-n", "2"])

        assert result.exit_code == 0
        assert [e["date"] for e in json.loads(result.stdout)] == [200, 300]

    def test_latest_human(self, populated: Path) -> None:
        """Human output shows commits and measurements."""
        result = runner.invoke(app, ["--data", str(populated), "latest", "--suite", "bench-A", "-n", "1"])

        assert result.exit_code == 0
        assert f"{3:040x}"[:12] in result.stdout
        assert "x: 30 KiB" in result.stdout

    def test_range(self, populated: Path) -> None:
        """range filters by inclusive recording date."""
        result = runner.invoke(
            app,
            ["--data", str(populated), "--json", "range", "--suite", "bench-A", "--from", "150", "--to", "300"],
        )

        assert result.exit_code == 0
        assert [e["date"] for e in json.loads(result.stdout)] == [200, 300]

    def test_commit(self, populated: Path) -> None:
        """commit finds entries by commit id."""
        commit_id = f"{2:040x}"

        result = runner.invoke(app, ["--data", str(populated), "--json", "commit", commit_id, "--suite", "bench-A"])

        assert result.exit_code == 0
        assert [e["commit"]["id"] for e in json.loads(result.stdout)] == [commit_id]

    def test_unknown_suite(self, populated: Path) -> None:
        """Unknown suites are empty, not errors."""
        result = runner.invoke(app, ["--data", str(populated), "latest", "--suite", "nope"])

        assert result.exit_code == 0
        assert "No entries." in result.stdout

    def test_missing_history_file(self, data_path: Path) -> None:
        """A history that doesn't exist yet is empty."""
        result = runner.invoke(app, ["--data", str(data_path), "suites"])

        assert result.exit_code == 0
        assert "No suites." in result.stdout


# ============================================================================
# Stats and Check Tests
# ============================================================================


class TestStatsCommand:
    """Tests for stats command."""

    def test_stats(self, populated: Path) -> None:
        """stats reports window statistics."""
        result = runner.invoke(
            app,
            ["--data", str(populated), "--json", "stats", "--suite", "bench-A", "--bench", "x", "--window", "3"],
        )

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["sample_count"] == 3
        assert data["mean"] == pytest.approx(16.667, abs=0.01)
        assert data["stddev"] == pytest.approx(9.43, abs=0.01)

    def test_stats_no_data(self, populated: Path) -> None:
        """A bench without samples reports no data."""
        result = runner.invoke(app, ["--data", str(populated), "stats", "--suite", "bench-A", "--bench", "missing"])

        assert result.exit_code == 0
        assert "No data." in result.stdout


    def test_stats_zero_window(self, populated: Path) -> None:
        """--window 0 is an empty window, not the default one."""
        result = runner.invoke(
            app,
            ["--data", str(populated), "--json", "stats", "--suite", "bench-A", "--bench", "x", "--window", "0"],
        )

        assert result.exit_code == 0
        assert json.loads(result.stdout)["sample_count"] == 0


class TestCheckCommand:
    """Tests for check command."""

    def test_within_window(
        self,
        populated: Path,
        entry_payload: PayloadFactory,
        write_payload: Callable[[Any, str], Path],
    ) -> None:
        """A value inside the window passes."""
        path = write_payload(entry_payload(commit_id="f" * 40, date=400, benches={"x": 10}), "new.json")

        result = runner.invoke(
            app,
            ["--data", str(populated), "check", str(path), "--suite", "bench-A", "--window", "3", "--threshold", "1"],
        )

        assert result.exit_code == 0
        assert "No regressions detected." in result.stdout

    def test_regression_exits_1(
        self,
        populated: Path,
        entry_payload: PayloadFactory,
        write_payload: Callable[[Any, str], Path],
    ) -> None:
        """A value far outside the window fails the check."""
        path = write_payload(entry_payload(commit_id="f" * 40, date=400, benches={"x": 100}), "new.json")

        result = runner.invoke(
            app,
            ["--data", str(populated), "check", str(path), "--suite", "bench-A", "--window", "3", "--threshold", "1"],
        )

        assert result.exit_code == 1
        assert "x is worse" in result.stdout

    def test_check_does_not_append(
        self,
        populated: Path,
        entry_payload: PayloadFactory,
        write_payload: Callable[[Any, str], Path],
    ) -> None:
        """check only reads the history."""
        path = write_payload(entry_payload(commit_id="f" * 40, date=400, benches={"x": 10}), "new.json")
        before = populated.read_text()

        runner.invoke(app, ["--data", str(populated), "check", str(path), "--suite", "bench-A"])

        assert populated.read_text() == before

    def test_policy_file(
        self,
        tmp_path: Path,
        populated: Path,
        entry_payload: PayloadFactory,
        write_payload: Callable[[Any, str], Path],
    ) -> None:
        """Thresholds can come from a YAML policy."""
        policy = tmp_path / "regression.yaml"
        policy.write_text("regression:\n  window_size: 3\n  per_bench:\n    x: 20.0\n")
        path = write_payload(entry_payload(commit_id="f" * 40, date=400, benches={"x": 100}), "new.json")

        result = runner.invoke(
            app,
            ["--data", str(populated), "--json", "check", str(path), "--suite", "bench-A", "--policy", str(policy)],
        )

        assert result.exit_code == 0
        assert json.loads(result.stdout)["has_regressions"] is False

    def test_missing_policy(
        self,
        tmp_path: Path,
        populated: Path,
        sample_payload: dict[str, Any],
        write_payload: Callable[[Any, str], Path],
    ) -> None:
        """A missing policy file is an input error."""
        path = write_payload(sample_payload, "new.json")

        result = runner.invoke(
            app,
            [
                "--data",
                str(populated),
                "check",
                str(path),
                "--suite",
                "bench-A",
                "--policy",
                str(tmp_path / "missing.yaml"),
            ],
        )

        assert result.exit_code == 2
