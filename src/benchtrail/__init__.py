"""benchtrail: Validate, store, and query continuous-benchmark histories."""

from __future__ import annotations

from benchtrail.core.exceptions import (
    BenchtrailError,
    DuplicateExactRecord,
    StorageIOError,
    ValidationError,
)
from benchtrail.history import (
    BenchmarkData,
    BenchmarkEntry,
    DataJSFileStore,
    HistoryStore,
    JSONFileStore,
    MemoryStore,
    validate_entry,
)
from benchtrail.regression import RegressionDetector, RegressionThresholds, WindowStats

__version__ = "0.3.0"
__all__ = [
    # Errors
    "BenchtrailError",
    "DuplicateExactRecord",
    "StorageIOError",
    "ValidationError",
    # History
    "BenchmarkData",
    "BenchmarkEntry",
    "DataJSFileStore",
    "HistoryStore",
    "JSONFileStore",
    "MemoryStore",
    "validate_entry",
    # Regression
    "RegressionDetector",
    "RegressionThresholds",
    "WindowStats",
    # Version
    "__version__",
]
