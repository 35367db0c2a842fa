"""Models for benchmark history.

This module provides the pydantic models mirroring the dashboard data
file: commits, benches, entries and the persisted root object.

Unknown keys are kept on every model so a history file round-trips
without losing fields this library does not interpret.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

# Tools whose measurements improve as they grow (ops/sec style).
BIGGER_IS_BETTER: set[str] = {"benchmarkjs", "pytest", "customBiggerIsBetter"}

COMMIT_ID_PATTERN = r"^[0-9a-fA-F]{7,64}$"


class CommitAuthor(BaseModel):
    """Author or committer of a benchmarked commit.

    Attributes:
        name: Display name.
        email: Email address.
        username: Hosting-service username, when known.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Email address")
    username: str | None = Field(default=None, description="Hosting-service username")


class Commit(BaseModel):
    """Commit attribution for a benchmark run.

    Attributes:
        author: Who wrote the change.
        committer: Who committed the change.
        id: Content hash of the commit (hex).
        message: Commit message, stored verbatim.
        timestamp: ISO-8601 commit timestamp.
        url: Link to the commit on the hosting service.
        distinct: Whether the commit was distinct in its push event.
        tree_id: Hash of the commit's tree.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    author: CommitAuthor
    committer: CommitAuthor
    id: str = Field(..., pattern=COMMIT_ID_PATTERN, description="Commit hash")
    message: str = Field(..., description="Commit message")
    timestamp: str = Field(..., description="ISO-8601 commit timestamp")
    url: str = Field(..., description="Link to the commit")
    distinct: bool | None = Field(default=None, description="Distinct in push event")
    tree_id: str | None = Field(default=None, description="Tree hash")

    @field_validator("timestamp")
    @classmethod
    def _check_timestamp(cls, value: str) -> str:
        normalized = value[:-1] + "+00:00" if value.endswith("Z") else value
        try:
            datetime.fromisoformat(normalized)
        except ValueError:
            raise PydanticCustomError(
                "iso_timestamp",
                "Invalid ISO-8601 timestamp: {value}",
                {"value": value},
            ) from None
        return value


class Bench(BaseModel):
    """A single named measurement within a benchmark run.

    Attributes:
        name: Measurement name, unique within its entry.
        value: Finite numeric value. Integers stay integers.
        unit: Unit of measure (e.g. "KiB", "seconds").
        range: Optional spread reported by the tool (e.g. "± 12").
        extra: Optional free-text detail reported by the tool.

    Example:
        >>> Bench(name="Sent to peers", value=12345.6, unit="KiB")
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    name: str = Field(..., min_length=1, description="Measurement name")
    value: int | float = Field(..., description="Measured value")
    unit: str = Field(..., min_length=1, description="Unit of measure")
    range: str | None = Field(default=None, description="Reported spread")
    extra: str | None = Field(default=None, description="Extra tool output")

    @field_validator("value", mode="before")
    @classmethod
    def _check_finite(cls, value: Any) -> Any:
        # bool is an int subclass; strings would be coerced in lax mode
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise PydanticCustomError(
                "finite_number",
                "Value must be a finite number, got {type}",
                {"type": type(value).__name__},
            )
        if isinstance(value, float) and not math.isfinite(value):
            raise PydanticCustomError("finite_number", "Value must be a finite number, got {value}", {"value": value})
        return value


class BenchmarkEntry(BaseModel):
    """One benchmark run, tied to one commit and one recording time.

    Attributes:
        commit: Commit the run measured.
        date: Epoch milliseconds when the run was recorded.
        tool: Tool identifier naming the comparison semantics.
        benches: Measurements, in the order the tool reported them.

    Example:
        >>> entry = BenchmarkEntry.from_dict(payload)
        >>> entry.bench("Sent to peers").value
        12345.6
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    commit: Commit
    date: int = Field(..., strict=True, ge=0, description="Recording time (epoch ms)")
    tool: str = Field(..., min_length=1, description="Tool identifier")
    benches: list[Bench] = Field(..., min_length=1, description="Measurements")

    @field_validator("benches")
    @classmethod
    def _check_unique_names(cls, benches: list[Bench]) -> list[Bench]:
        seen: set[str] = set()
        for bench in benches:
            if bench.name in seen:
                raise PydanticCustomError(
                    "duplicate_bench_name",
                    "Duplicate bench name '{name}'",
                    {"name": bench.name},
                )
            seen.add(bench.name)
        return benches

    @property
    def bigger_is_better(self) -> bool:
        """Whether larger values are improvements for this entry's tool."""
        return self.tool in BIGGER_IS_BETTER

    def bench(self, name: str) -> Bench | None:
        """Get a measurement by name.

        Args:
            name: Measurement name.

        Returns:
            The measurement, or None if this run did not record it.
        """
        for bench in self.benches:
            if bench.name == name:
                return bench
        return None

    def is_exact_duplicate(self, other: BenchmarkEntry) -> bool:
        """Check whether another entry is the same commit, date and measurements."""
        return self.commit.id == other.commit.id and self.date == other.date and self.benches == other.benches

    def to_dict(self) -> dict[str, Any]:
        """Convert entry to dictionary for serialization.

        Returns:
            Dictionary in the dashboard data format.
        """
        return self.model_dump(mode="json", exclude_unset=True)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BenchmarkEntry:
        """Create entry from dictionary.

        Args:
            data: Dictionary in the dashboard data format.

        Returns:
            BenchmarkEntry instance.

        Raises:
            pydantic.ValidationError: If the data is malformed. Use
                ``validate_entry`` to get benchtrail's error type.
        """
        return cls.model_validate(data)


class BenchmarkData(BaseModel):
    """Persisted root object of a benchmark history.

    Attributes:
        last_update: Epoch milliseconds of the last write (``lastUpdate``).
        repo_url: Repository the history belongs to (``repoUrl``).
        entries: Entries per suite, in insertion order.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    last_update: int = Field(default=0, alias="lastUpdate", ge=0)
    repo_url: str = Field(default="", alias="repoUrl")
    entries: dict[str, list[BenchmarkEntry]] = Field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary with the file's key names.

        Returns:
            ``{"lastUpdate": ..., "repoUrl": ..., "entries": {...}}``
        """
        data: dict[str, Any] = {
            "lastUpdate": self.last_update,
            "repoUrl": self.repo_url,
            "entries": {suite: [e.to_dict() for e in entries] for suite, entries in self.entries.items()},
        }
        if self.model_extra:
            data.update(self.model_extra)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BenchmarkData:
        """Create root object from dictionary.

        Args:
            data: Dictionary with ``lastUpdate``, ``repoUrl`` and ``entries``.

        Returns:
            BenchmarkData instance.
        """
        return cls.model_validate(data)
