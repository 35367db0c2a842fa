"""Regression detection module for benchtrail.

This module provides rolling window statistics over a suite's history
and flags benchmark values that deviate from them.

Example:
    >>> from benchtrail.regression import RegressionDetector, RegressionThresholds
    >>>
    >>> detector = RegressionDetector(history, RegressionThresholds(threshold_stddevs=3.0))
    >>> result = detector.check_entry("bench-A", new_entry)
    >>> if result.has_critical:
    ...     print("Critical regressions detected!")
"""

from __future__ import annotations

from benchtrail.regression.detector import RegressionDetector
from benchtrail.regression.models import (
    RegressionAlert,
    RegressionResult,
    RegressionThresholds,
    WindowStats,
)

__all__ = [
    "RegressionAlert",
    "RegressionDetector",
    "RegressionResult",
    "RegressionThresholds",
    "WindowStats",
]
