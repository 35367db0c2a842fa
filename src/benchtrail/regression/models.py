"""Models for regression detection.

This module provides dataclasses for regression thresholds, window
statistics, alerts, and results.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Literal

from benchtrail.core.exceptions import ConfigurationError


@dataclass
class RegressionThresholds:
    """Thresholds for regression detection.

    A value is a regression when it lies more than ``threshold_stddevs``
    population standard deviations away from the window mean.

    Attributes:
        window_size: Number of most recent entries to compare against (default 20).
        threshold_stddevs: Distance from the mean, in stddevs, that flags (default 2.0).
        critical_multiplier: Multiplier for critical severity (default 2x).
        only_worse: Only report deviations in the tool's "worse" direction.
        per_bench: Threshold overrides keyed by bench name.

    Example:
        >>> thresholds = RegressionThresholds(threshold_stddevs=3.0, per_bench={"Sent to peers": 1.5})
        >>> thresholds.threshold_for("Sent to peers")
        1.5
    """

    window_size: int = 20
    threshold_stddevs: float = 2.0
    critical_multiplier: float = 2.0
    only_worse: bool = False
    per_bench: dict[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.window_size < 1:
            raise ConfigurationError(f"window_size must be >= 1, got {self.window_size}")
        if self.threshold_stddevs <= 0:
            raise ConfigurationError(f"threshold_stddevs must be > 0, got {self.threshold_stddevs}")
        if self.critical_multiplier < 1:
            raise ConfigurationError(f"critical_multiplier must be >= 1, got {self.critical_multiplier}")
        for name, value in self.per_bench.items():
            if value <= 0:
                raise ConfigurationError(f"Threshold for bench '{name}' must be > 0, got {value}")

    def threshold_for(self, bench_name: str) -> float:
        """Get the threshold (in stddevs) for a bench."""
        return self.per_bench.get(bench_name, self.threshold_stddevs)

    @classmethod
    def from_yaml(cls, path: Path | str) -> RegressionThresholds:
        """Load thresholds from a YAML file.

        The file may hold the settings at the top level or under a
        ``regression`` key.

        Args:
            path: Path to the YAML configuration file.

        Returns:
            RegressionThresholds loaded from the file.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ConfigurationError: If the YAML is invalid.
        """
        import yaml

        path = Path(path)
        if not path.exists():
            msg = f"Configuration file not found: {path}"
            raise FileNotFoundError(msg)

        try:
            data = yaml.safe_load(path.read_text())
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigurationError(f"Expected a mapping in {path}")

        section = data.get("regression", data)
        defaults = cls()
        try:
            return cls(
                window_size=int(section.get("window_size", defaults.window_size)),
                threshold_stddevs=float(section.get("threshold_stddevs", defaults.threshold_stddevs)),
                critical_multiplier=float(section.get("critical_multiplier", defaults.critical_multiplier)),
                only_worse=bool(section.get("only_worse", defaults.only_worse)),
                per_bench={str(k): float(v) for k, v in (section.get("per_bench") or {}).items()},
            )
        except (TypeError, ValueError, AttributeError) as e:
            raise ConfigurationError(f"Invalid regression settings in {path}: {e}") from e

    def to_yaml(self, path: Path | str) -> None:
        """Save thresholds to a YAML file.

        Args:
            path: Path to the output YAML file.
        """
        import yaml

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(yaml.dump({"regression": asdict(self)}, default_flow_style=False, sort_keys=False))


@dataclass(frozen=True)
class WindowStats:
    """Summary statistics of one bench over a window of recent entries.

    Attributes:
        bench_name: Measurement the statistics describe.
        sample_count: Entries in the window that recorded the bench.
        mean: Arithmetic mean, None without data.
        stddev: Population standard deviation, None without data.
        min: Smallest value, None without data.
        max: Largest value, None without data.

    Example:
        >>> stats = detector.stats_for("bench-A", "x", 3)
        >>> stats.mean, stats.stddev
        (16.666666666666668, 9.428090415820632)
    """

    bench_name: str
    sample_count: int
    mean: float | None = None
    stddev: float | None = None
    min: float | None = None
    max: float | None = None

    @classmethod
    def no_data(cls, bench_name: str) -> WindowStats:
        """Result for a window without any sample of the bench."""
        return cls(bench_name=bench_name, sample_count=0)

    @property
    def has_data(self) -> bool:
        """Whether the window held at least one sample."""
        return self.sample_count > 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return asdict(self)


@dataclass
class RegressionAlert:
    """Alert for a bench value outside its recent window.

    Attributes:
        bench_name: Name of the measurement.
        value: Value in the new entry.
        unit: Unit of the measurement.
        mean: Window mean.
        stddev: Window population standard deviation.
        z_score: Signed distance from the mean in stddevs.
        threshold_stddevs: Threshold that was exceeded.
        direction: "worse" or "better" according to the tool's semantics.
        severity: "warning" past the threshold, "critical" past the multiplied threshold.

    Example:
        >>> alert.message
        'Sent to peers is worse: 100 KiB is 8.84 stddevs from mean 16.67 (threshold: 1.00)'
    """

    bench_name: str
    value: float
    unit: str
    mean: float
    stddev: float
    z_score: float
    threshold_stddevs: float
    direction: Literal["worse", "better"]
    severity: Literal["warning", "critical"]

    @property
    def message(self) -> str:
        """Human-readable alert message."""
        return (
            f"{self.bench_name} is {self.direction}: {self.value:g} {self.unit} is "
            f"{abs(self.z_score):.2f} stddevs from mean {self.mean:.2f} "
            f"(threshold: {self.threshold_stddevs:.2f})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        data = asdict(self)
        data["message"] = self.message
        return data


@dataclass
class RegressionResult:
    """Result of checking a new entry against a suite's history.

    Attributes:
        suite: Suite the entry was checked against.
        commit_id: Commit of the checked entry.
        alerts: Regression alerts detected.
        stats: Window statistics per bench of the checked entry.
        timestamp: When the check was performed.

    Example:
        >>> result = detector.check_entry("bench-A", entry)
        >>> if result.has_critical:
        ...     print("Critical regressions detected!")
    """

    suite: str
    commit_id: str
    alerts: list[RegressionAlert]
    stats: dict[str, WindowStats]
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def has_regressions(self) -> bool:
        """Check if any regressions were detected."""
        return len(self.alerts) > 0

    @property
    def has_critical(self) -> bool:
        """Check if any critical regressions were detected."""
        return any(alert.severity == "critical" for alert in self.alerts)

    @property
    def warning_count(self) -> int:
        """Count of warning-level regressions."""
        return sum(1 for alert in self.alerts if alert.severity == "warning")

    @property
    def critical_count(self) -> int:
        """Count of critical-level regressions."""
        return sum(1 for alert in self.alerts if alert.severity == "critical")

    def summary(self) -> str:
        """Generate a human-readable summary.

        Returns:
            Multi-line summary string.
        """
        if not self.alerts:
            return "No regressions detected."

        lines = [
            f"Regression Check for {self.commit_id[:12]} in '{self.suite}' "
            f"({self.timestamp.strftime('%Y-%m-%d %H:%M:%S')})",
            f"  Critical: {self.critical_count}, Warnings: {self.warning_count}",
            "",
            "Alerts:",
        ]

        for alert in self.alerts:
            severity_marker = "[CRITICAL]" if alert.severity == "critical" else "[WARNING]"
            lines.append(f"  {severity_marker} {alert.message}")

        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "suite": self.suite,
            "commit_id": self.commit_id,
            "timestamp": self.timestamp.isoformat(),
            "has_regressions": self.has_regressions,
            "alerts": [alert.to_dict() for alert in self.alerts],
            "stats": {name: stats.to_dict() for name, stats in self.stats.items()},
        }
