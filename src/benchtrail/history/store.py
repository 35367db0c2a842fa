"""Append-only benchmark history store.

This module provides HistoryStore, the owner of a benchmark history:
it admits validated entries suite by suite and answers range, commit
and recency queries over immutable snapshots.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING

from benchtrail.core.exceptions import DuplicateExactRecord, OutOfOrderEntry, StorageIOError
from benchtrail.history.models import BenchmarkData, BenchmarkEntry

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from benchtrail.history.storage import StorageProtocol

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class HistoryStore:
    """Append-only history of benchmark entries, partitioned by suite.

    Each suite is held as a tuple that is replaced, never modified, on
    append. Readers work on whatever tuple they picked up, so they never
    see a partially written entry and need no locking. Writers are
    serialized per suite, and the backend write itself is serialized
    because backends persist the whole root object.

    Attributes:
        repo_url: Repository the history belongs to.
        last_update: Epoch milliseconds of the last accepted append.

    Example:
        >>> history = await HistoryStore.open(DataJSFileStore("data.js"))
        >>> await history.append("bench-A", entry)
        >>> [e.date for e in history.query_range("bench-A", 0, 10**13)]
        [1700000000000]
    """

    def __init__(self, backend: StorageProtocol, data: BenchmarkData | None = None) -> None:
        """Initialize with a storage backend and already loaded state.

        Prefer ``HistoryStore.open``, which loads the state from the backend.

        Args:
            backend: Storage backend the history is persisted to.
            data: Loaded root object (default: empty history).
        """
        data = data or BenchmarkData()
        self._backend = backend
        self.repo_url = data.repo_url
        self.last_update = data.last_update
        self._extra = dict(data.model_extra or {})
        self._suites: dict[str, tuple[BenchmarkEntry, ...]] = {
            suite: tuple(entries) for suite, entries in data.entries.items()
        }
        self._suite_locks: dict[str, asyncio.Lock] = {}
        self._save_lock = asyncio.Lock()

    @classmethod
    async def open(cls, backend: StorageProtocol, repo_url: str | None = None) -> HistoryStore:
        """Load a history from its backend.

        Args:
            backend: Storage backend to load from and persist to.
            repo_url: Repository URL to record when the stored one is empty.

        Returns:
            A HistoryStore holding the persisted entries.

        Raises:
            StorageIOError: If the backend cannot be read.
        """
        data = await backend.load()
        store = cls(backend, data)
        if repo_url and not store.repo_url:
            store.repo_url = repo_url
        return store

    def _lock_for(self, suite: str) -> asyncio.Lock:
        lock = self._suite_locks.get(suite)
        if lock is None:
            lock = self._suite_locks[suite] = asyncio.Lock()
        return lock

    def snapshot(self) -> BenchmarkData:
        """Build the persisted root object for the current state.

        Returns:
            Root object in the dashboard data shape.
        """
        return BenchmarkData(
            last_update=self.last_update,
            repo_url=self.repo_url,
            entries={suite: list(entries) for suite, entries in self._suites.items()},
            **self._extra,
        )

    async def append(self, suite: str, entry: BenchmarkEntry) -> None:
        """Append a validated entry to the end of a suite.

        The entry is persisted before it becomes visible to readers; if
        the backend fails, the in-memory history is left unchanged.

        Args:
            suite: Suite identifier (e.g. "statement-distribution-regression-bench").
            entry: Validated benchmark entry.

        Raises:
            DuplicateExactRecord: If the suite's last entry has the same
                commit id, date and measurements. Nothing is written.
            OutOfOrderEntry: If the entry was recorded before the suite's
                last entry.
            StorageIOError: If the backend write fails.
        """
        async with self._lock_for(suite):
            current = self._suites.get(suite, ())
            if current:
                last = current[-1]
                if last.is_exact_duplicate(entry):
                    logger.warning(f"Ignoring re-post of commit {entry.commit.id} at {entry.date} to suite '{suite}'")
                    raise DuplicateExactRecord(suite, entry.commit.id, entry.date)
                if entry.date < last.date:
                    raise OutOfOrderEntry(suite, entry.date, last.date)

            updated = (*current, entry)
            last_update = max(_now_ms(), self.last_update)

            async with self._save_lock:
                data = self.snapshot()
                data.entries[suite] = list(updated)
                data.last_update = last_update
                try:
                    await self._backend.save(data)
                except StorageIOError as e:
                    logger.error(f"Failed to persist entry for commit {entry.commit.id} in suite '{suite}'")
                    raise StorageIOError(e.operation, e.path, suite=suite, reason=e.reason) from e
                self._suites[suite] = updated
                self.last_update = last_update

        logger.info(f"Appended commit {entry.commit.id} to suite '{suite}' ({len(updated)} entries)")

    def check_order(self, suite: str, entries: Iterable[BenchmarkEntry]) -> None:
        """Check that a batch can be appended to a suite in order.

        Lets callers reject a whole batch before any of it is written.

        Args:
            suite: Suite identifier.
            entries: Entries in the order they would be appended.

        Raises:
            OutOfOrderEntry: At the first entry dated before its predecessor,
                or before the suite's last entry.
        """
        current = self._suites.get(suite, ())
        previous = current[-1].date if current else None
        for entry in entries:
            if previous is not None and entry.date < previous:
                raise OutOfOrderEntry(suite, entry.date, previous)
            previous = entry.date

    def suites(self) -> list[str]:
        """List suite identifiers, in the order they were first created."""
        return list(self._suites)

    def count(self, suite: str) -> int:
        """Number of entries recorded for a suite (0 for unknown suites)."""
        return len(self._suites.get(suite, ()))

    def bench_names(self, suite: str) -> list[str]:
        """List measurement names seen in a suite, in first-seen order.

        Args:
            suite: Suite identifier.

        Returns:
            Unique bench names; empty for unknown suites.
        """
        names: dict[str, None] = {}
        for entry in self._suites.get(suite, ()):
            for bench in entry.benches:
                names.setdefault(bench.name, None)
        return list(names)

    def query_range(self, suite: str, from_date: int, to_date: int) -> Iterator[BenchmarkEntry]:
        """Iterate entries recorded within an inclusive date range.

        Each call starts a fresh pass over the suite as it is now, so the
        query can be repeated freely.

        Args:
            suite: Suite identifier.
            from_date: Earliest recording time (epoch ms), inclusive.
            to_date: Latest recording time (epoch ms), inclusive.

        Returns:
            Lazy iterator of entries in ascending date order. Entries with
            equal dates keep insertion order.
        """
        entries = self._suites.get(suite, ())
        # Histories written by other tools are not guaranteed to be sorted
        if any(a.date > b.date for a, b in zip(entries, entries[1:])):
            entries = tuple(sorted(entries, key=lambda e: e.date))
        return (e for e in entries if from_date <= e.date <= to_date)

    def query_by_commit(self, suite: str, commit_id: str) -> list[BenchmarkEntry]:
        """Get every entry recorded for a commit.

        Re-runs of the same commit are distinct samples, so more than one
        entry may match.

        Args:
            suite: Suite identifier.
            commit_id: Full commit hash.

        Returns:
            Matching entries in insertion order; empty if none match.
        """
        return [e for e in self._suites.get(suite, ()) if e.commit.id == commit_id]

    def latest(self, suite: str, n: int) -> list[BenchmarkEntry]:
        """Get the most recent entries of a suite.

        Args:
            suite: Suite identifier.
            n: Number of entries wanted.

        Returns:
            Up to ``n`` most recently appended entries, oldest first.
        """
        if n <= 0:
            return []
        return list(self._suites.get(suite, ())[-n:])
