"""Core module for benchtrail.

This module contains the configuration and exception hierarchy shared
by the history store and the regression engine.
"""

from __future__ import annotations

from benchtrail.core.config import Settings
from benchtrail.core.exceptions import (
    BenchtrailError,
    ConfigurationError,
    DuplicateExactRecord,
    OutOfOrderEntry,
    StorageIOError,
    ValidationError,
    Violation,
)

__all__ = [
    "BenchtrailError",
    "ConfigurationError",
    "DuplicateExactRecord",
    "OutOfOrderEntry",
    "Settings",
    "StorageIOError",
    "ValidationError",
    "Violation",
]
