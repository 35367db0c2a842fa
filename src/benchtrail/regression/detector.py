"""Regression detector for benchmark histories.

This module provides the RegressionDetector class, which computes
rolling window statistics per bench and flags new values that stray
too far from them.
"""

from __future__ import annotations

import logging
import statistics
from typing import TYPE_CHECKING

from benchtrail.regression.models import (
    RegressionAlert,
    RegressionResult,
    RegressionThresholds,
    WindowStats,
)

if TYPE_CHECKING:
    from benchtrail.history.models import BenchmarkEntry
    from benchtrail.history.store import HistoryStore

logger = logging.getLogger(__name__)


def _exceeds(value: float, mean: float, stddev: float, threshold_stddevs: float) -> bool:
    return abs(value - mean) > threshold_stddevs * stddev


class RegressionDetector:
    """Detect regressions of new benchmark entries against recent history.

    Statistics use the population standard deviation. A window with zero
    spread never flags.

    Attributes:
        history: History store the windows are read from.
        thresholds: Default window size and thresholds.

    Example:
        >>> detector = RegressionDetector(history)
        >>> detector.stats_for("bench-A", "x", 3).mean
        16.666666666666668
        >>> detector.is_regression("bench-A", "x", new_entry, window_size=3, threshold_stddevs=1)
        True
    """

    def __init__(
        self,
        history: HistoryStore,
        thresholds: RegressionThresholds | None = None,
    ) -> None:
        """Initialize detector with a history store.

        Args:
            history: History store to read windows from.
            thresholds: Defaults for ``check_entry``. Defaults to RegressionThresholds().
        """
        self.history = history
        self.thresholds = thresholds or RegressionThresholds()

    def stats_for(self, suite: str, bench_name: str, window_size: int) -> WindowStats:
        """Compute statistics for a bench over the most recent entries.

        Entries in the window that did not record the bench are skipped,
        not counted as zero.

        Args:
            suite: Suite identifier.
            bench_name: Measurement name.
            window_size: Number of most recent entries to look at.

        Returns:
            WindowStats; ``sample_count == 0`` with empty fields when the
            window holds no sample of the bench.
        """
        values: list[float] = []
        for entry in self.history.latest(suite, window_size):
            bench = entry.bench(bench_name)
            if bench is not None:
                values.append(bench.value)

        if not values:
            return WindowStats.no_data(bench_name)

        mean = statistics.fmean(values)
        return WindowStats(
            bench_name=bench_name,
            sample_count=len(values),
            mean=mean,
            stddev=statistics.pstdev(values, mu=mean),
            min=min(values),
            max=max(values),
        )

    def is_regression(
        self,
        suite: str,
        bench_name: str,
        new_entry: BenchmarkEntry,
        window_size: int,
        threshold_stddevs: float,
    ) -> bool:
        """Check whether a new entry's value strays from the recent window.

        Flags when ``|value - mean| > threshold_stddevs * stddev`` and the
        window has a non-zero spread, in either direction.

        Args:
            suite: Suite identifier.
            bench_name: Measurement name.
            new_entry: Entry holding the value to check.
            window_size: Number of most recent entries to compare against.
            threshold_stddevs: Allowed distance from the mean, in stddevs.

        Returns:
            True if the value is a regression. False when the window has no
            data, zero spread, or the entry lacks the bench.
        """
        bench = new_entry.bench(bench_name)
        if bench is None:
            return False

        stats = self.stats_for(suite, bench_name, window_size)
        if stats.mean is None or not stats.stddev:
            return False
        return _exceeds(bench.value, stats.mean, stats.stddev, threshold_stddevs)

    def check_entry(
        self,
        suite: str,
        new_entry: BenchmarkEntry,
        window_size: int | None = None,
        thresholds: RegressionThresholds | None = None,
    ) -> RegressionResult:
        """Check every bench of a new entry against the suite's history.

        Args:
            suite: Suite identifier.
            new_entry: Entry to check, typically before it is appended.
            window_size: Override of the thresholds' window size.
            thresholds: Override of the detector's thresholds.

        Returns:
            RegressionResult with alerts and per-bench window statistics.
        """
        thresholds = thresholds or self.thresholds
        window = window_size if window_size is not None else thresholds.window_size

        alerts: list[RegressionAlert] = []
        all_stats: dict[str, WindowStats] = {}

        for bench in new_entry.benches:
            threshold = thresholds.threshold_for(bench.name)
            stats = self.stats_for(suite, bench.name, window)
            all_stats[bench.name] = stats

            mean, stddev = stats.mean, stats.stddev
            if mean is None or not stddev or not _exceeds(bench.value, mean, stddev, threshold):
                continue

            z_score = (bench.value - mean) / stddev
            increased = z_score > 0
            direction = "better" if increased == new_entry.bigger_is_better else "worse"
            if thresholds.only_worse and direction == "better":
                continue

            is_critical = abs(z_score) > threshold * thresholds.critical_multiplier
            alerts.append(
                RegressionAlert(
                    bench_name=bench.name,
                    value=bench.value,
                    unit=bench.unit,
                    mean=mean,
                    stddev=stddev,
                    z_score=z_score,
                    threshold_stddevs=threshold,
                    direction=direction,
                    severity="critical" if is_critical else "warning",
                )
            )

        if alerts:
            logger.info(f"Commit {new_entry.commit.id} in suite '{suite}': {len(alerts)} regression alert(s)")

        return RegressionResult(
            suite=suite,
            commit_id=new_entry.commit.id,
            alerts=alerts,
            stats=all_stats,
        )
