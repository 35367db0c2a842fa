"""Benchmark history module for benchtrail.

This module provides tools for validating, storing, and querying
benchmark runs recorded by continuous-benchmarking jobs.

Example:
    >>> from benchtrail.history import DataJSFileStore, HistoryStore, validate_entry
    >>>
    >>> history = await HistoryStore.open(DataJSFileStore("gh-pages/dev/bench/data.js"))
    >>> entry = validate_entry(payload)
    >>> await history.append("statement-distribution-regression-bench", entry)
    >>>
    >>> for entry in history.query_range("statement-distribution-regression-bench", start, end):
    ...     print(entry.commit.id, entry.date)
"""

from __future__ import annotations

from benchtrail.history.models import (
    BIGGER_IS_BETTER,
    Bench,
    BenchmarkData,
    BenchmarkEntry,
    Commit,
    CommitAuthor,
)
from benchtrail.history.storage import (
    DataJSFileStore,
    JSONFileStore,
    MemoryStore,
    StorageProtocol,
    store_for_path,
)
from benchtrail.history.store import HistoryStore
from benchtrail.history.validator import validate_entries, validate_entry

__all__ = [
    "BIGGER_IS_BETTER",
    "Bench",
    "BenchmarkData",
    "BenchmarkEntry",
    "Commit",
    "CommitAuthor",
    "DataJSFileStore",
    "HistoryStore",
    "JSONFileStore",
    "MemoryStore",
    "StorageProtocol",
    "store_for_path",
    "validate_entries",
    "validate_entry",
]
