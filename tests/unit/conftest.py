"""Shared fixtures for benchtrail unit tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from benchtrail.history import BenchmarkEntry


def entry_payload(
    commit_id: str = "a" * 40,
    date: int = 1_700_000_000_000,
    benches: dict[str, float] | None = None,
    tool: str = "customSmallerIsBetter",
    unit: str = "KiB",
) -> dict[str, Any]:
    """Build a raw entry in the dashboard data format."""
    if benches is None:
        benches = {"Sent to peers": 1234.5, "Received from peers": 987.25}
    return {
        "commit": {
            "author": {"email": "dev@example.com", "name": "Dev Eloper", "username": "dev"},
            "committer": {"email": "noreply@github.com", "name": "GitHub", "username": "web-flow"},
            "distinct": True,
            "id": commit_id,
            "message": "Speed up statement distribution (#1234)",
            "timestamp": "2024-01-15T10:30:00+01:00",
            "tree_id": "b" * 40,
            "url": f"https://github.com/example/project/commit/{commit_id}",
        },
        "date": date,
        "tool": tool,
        "benches": [{"name": name, "value": value, "unit": unit} for name, value in benches.items()],
    }


def make_entry(
    commit_id: str = "a" * 40,
    date: int = 1_700_000_000_000,
    benches: dict[str, float] | None = None,
    tool: str = "customSmallerIsBetter",
) -> BenchmarkEntry:
    """Build a validated entry."""
    return BenchmarkEntry.from_dict(entry_payload(commit_id, date, benches, tool))


@pytest.fixture
def sample_payload() -> dict[str, Any]:
    """A raw, valid entry payload."""
    return entry_payload()


@pytest.fixture
def sample_entry() -> BenchmarkEntry:
    """A validated entry."""
    return make_entry()


@pytest.fixture(name="entry_payload")
def entry_payload_factory() -> Callable[..., dict[str, Any]]:
    """Factory for raw entry payloads."""
    return entry_payload


@pytest.fixture(name="make_entry")
def make_entry_factory() -> Callable[..., BenchmarkEntry]:
    """Factory for validated entries."""
    return make_entry
