"""Custom exceptions for benchtrail.

This module defines the exception hierarchy used throughout the library.
All exceptions inherit from BenchtrailError for easy catching.

ValidationError means the payload must be fixed; StorageIOError means
the persistence layer failed and the operation may be retried.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


class BenchtrailError(Exception):
    """Base exception for all benchtrail errors.

    Example:
        >>> try:
        ...     await store.append("bench-A", entry)
        ... except BenchtrailError as e:
        ...     print(f"benchtrail error: {e}")
    """


@dataclass(frozen=True)
class Violation:
    """A single problem found while validating a benchmark entry.

    Attributes:
        location: Dotted path to the offending field (e.g. "benches.2.value").
        message: Human-readable description of the problem.
    """

    location: str
    message: str

    def __str__(self) -> str:
        return f"{self.location or '<root>'}: {self.message}"


class ValidationError(BenchtrailError):
    """Raised when a candidate entry is malformed or incomplete.

    Carries every violation found, not only the first one.

    Example:
        >>> try:
        ...     validate_entry({"date": -1})
        ... except ValidationError as e:
        ...     for violation in e.violations:
        ...         print(violation)
    """

    def __init__(self, violations: list[Violation]) -> None:
        """Initialize ValidationError.

        Args:
            violations: All violations found in the input.
        """
        self.violations = list(violations)
        count = len(self.violations)
        details = "; ".join(str(v) for v in self.violations)
        super().__init__(f"{count} validation error{'s' if count != 1 else ''}: {details}")


class OutOfOrderEntry(ValidationError):
    """Raised when an entry is recorded earlier than the suite's latest entry."""

    def __init__(self, suite: str, date: int, latest_date: int) -> None:
        self.suite = suite
        self.date = date
        self.latest_date = latest_date
        super().__init__(
            [
                Violation(
                    location="date",
                    message=f"{date} is earlier than the latest date {latest_date} in suite '{suite}'",
                )
            ]
        )


class DuplicateExactRecord(BenchtrailError):
    """Raised when an identical entry is re-posted to the end of a suite.

    This is an acknowledgement rather than a failure: the store already
    holds the entry and nothing was written.
    """

    def __init__(self, suite: str, commit_id: str, date: int) -> None:
        self.suite = suite
        self.commit_id = commit_id
        self.date = date
        super().__init__(f"Entry for commit {commit_id} at {date} is already recorded in suite '{suite}'")


class StorageIOError(BenchtrailError):
    """Raised when the persistence layer fails.

    The operation that failed had no effect; callers may retry with backoff.

    Example:
        >>> raise StorageIOError("save", Path("data.js"), suite="bench-A")
    """

    def __init__(
        self,
        operation: str,
        path: Path | str | None = None,
        suite: str | None = None,
        reason: str | None = None,
    ) -> None:
        """Initialize StorageIOError.

        Args:
            operation: Storage operation that failed ("load" or "save").
            path: Storage location, when file based.
            suite: Suite being written, when known.
            reason: Description of the underlying failure.
        """
        self.operation = operation
        self.path = path
        self.suite = suite
        self.reason = reason
        msg = f"Storage {operation} failed"
        if path is not None:
            msg += f" for {path}"
        if suite is not None:
            msg += f" (suite '{suite}')"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class ConfigurationError(BenchtrailError):
    """Raised when configuration is invalid or missing.

    Example:
        >>> raise ConfigurationError("Invalid regression policy: window_size must be >= 1")
    """
