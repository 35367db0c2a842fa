"""Record validation for incoming benchmark entries.

This module turns untyped external input (decoded JSON from a CI job)
into BenchmarkEntry objects, reporting every problem at once so the
producer can fix a payload in a single round trip.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import pydantic

from benchtrail.core.exceptions import ValidationError, Violation
from benchtrail.history.models import BenchmarkEntry

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

DUPLICATE_NAME_ERROR = "duplicate_bench_name"


def _format_location(loc: Iterable[str | int]) -> str:
    return ".".join(str(part) for part in loc)


def _duplicate_name_violations(data: Any, prefix: tuple[str | int, ...]) -> list[Violation]:
    """Find repeated bench names directly in raw input.

    Needed because pydantic skips the uniqueness check on ``benches``
    whenever one of the benches is itself invalid.
    """
    if not isinstance(data, dict):
        return []
    benches = data.get("benches")
    if not isinstance(benches, list):
        return []

    seen: set[str] = set()
    violations: list[Violation] = []
    for bench in benches:
        name = bench.get("name") if isinstance(bench, dict) else None
        if not isinstance(name, str):
            continue
        if name in seen:
            violations.append(
                Violation(
                    location=_format_location((*prefix, "benches")),
                    message=f"Duplicate bench name '{name}'",
                )
            )
        seen.add(name)
    return violations


def _collect_violations(data: Any, prefix: tuple[str | int, ...] = ()) -> tuple[BenchmarkEntry | None, list[Violation]]:
    try:
        return BenchmarkEntry.model_validate(data), []
    except pydantic.ValidationError as e:
        errors = e.errors(include_url=False)
        violations = [
            Violation(location=_format_location((*prefix, *err["loc"])), message=err["msg"]) for err in errors
        ]
        if not any(err["type"] == DUPLICATE_NAME_ERROR for err in errors):
            violations.extend(_duplicate_name_violations(data, prefix))
        return None, violations


def validate_entry(data: Any) -> BenchmarkEntry:
    """Validate a candidate benchmark entry.

    Checks that required fields are present and typed, that ``benches``
    is a non-empty list with unique names, that every value is finite,
    every unit non-empty, and that ``date`` is a non-negative integer.

    Args:
        data: Decoded input claiming to be a benchmark entry.

    Returns:
        The validated entry. Its ``to_dict()`` gives normalized field order.

    Raises:
        ValidationError: With every violation found.

    Example:
        >>> entry = validate_entry(json.loads(payload))
        >>> entry.commit.id
        'a1b2c3d4...'
    """
    entry, violations = _collect_violations(data)
    if entry is None or violations:
        logger.debug(f"Rejected benchmark entry with {len(violations)} violation(s)")
        raise ValidationError(violations)
    return entry


def validate_entries(items: Any) -> list[BenchmarkEntry]:
    """Validate a batch of candidate entries.

    Violation locations are prefixed with the item's index in the batch.

    Args:
        items: Decoded list of candidate entries.

    Returns:
        The validated entries, in input order.

    Raises:
        ValidationError: With every violation across all items.
    """
    if not isinstance(items, list):
        raise ValidationError([Violation(location="", message="Expected a list of benchmark entries")])

    entries: list[BenchmarkEntry] = []
    violations: list[Violation] = []
    for index, item in enumerate(items):
        entry, item_violations = _collect_violations(item, prefix=(index,))
        if entry is not None:
            entries.append(entry)
        violations.extend(item_violations)

    if violations:
        logger.debug(f"Rejected batch of {len(items)} entries with {len(violations)} violation(s)")
        raise ValidationError(violations)
    return entries
