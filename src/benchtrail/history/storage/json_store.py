"""File storage for benchmark history.

This module provides file-based storage backends: plain JSON, and the
``data.js`` script written for dashboard frontends.
"""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any

import pydantic

from benchtrail.core.exceptions import StorageIOError
from benchtrail.history.models import BenchmarkData

logger = logging.getLogger(__name__)

DATA_JS_PREFIX = "window.BENCHMARK_DATA = "
_DATA_JS_PATTERN = re.compile(r"^\s*window\.BENCHMARK_DATA\s*=\s*(?P<body>.*?)\s*;?\s*$", re.DOTALL)


class JSONFileStore:
    """JSON file storage for benchmark history.

    Uses atomic writes (temp file + rename) for safety. A missing or
    empty file loads as an empty history; an unreadable or corrupt one
    raises StorageIOError rather than being silently replaced.

    Example:
        >>> store = JSONFileStore("benchmark-data/data.json")
        >>> data = await store.load()
        >>> await store.save(data)
    """

    def __init__(self, path: str | Path = "benchmark-data/data.json") -> None:
        """Initialize the JSON file store.

        Args:
            path: Path to the JSON file.
        """
        self._path = Path(path)

    @property
    def path(self) -> Path:
        """Location of the history file."""
        return self._path

    def _decode(self, content: str) -> Any:
        return json.loads(content)

    def _encode(self, data: dict[str, Any]) -> str:
        return json.dumps(data, indent=2, ensure_ascii=False) + "\n"

    async def load(self) -> BenchmarkData:
        """Load history from the file.

        Returns:
            The stored root object, or an empty one if the file doesn't exist.

        Raises:
            StorageIOError: If the file cannot be read or decoded.
        """
        if not self._path.exists():
            return BenchmarkData()

        try:
            content = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageIOError("load", self._path, reason=str(e)) from e

        if not content.strip():
            return BenchmarkData()

        try:
            raw = self._decode(content)
            data = BenchmarkData.from_dict(raw)
        except (ValueError, pydantic.ValidationError) as e:
            # json.JSONDecodeError is a ValueError
            logger.warning(f"Failed to load benchmark history from {self._path}: {e}")
            raise StorageIOError("load", self._path, reason=f"corrupt history file: {e}") from e

        logger.debug(f"Loaded {sum(len(v) for v in data.entries.values())} entries from {self._path}")
        return data

    async def save(self, data: BenchmarkData) -> None:
        """Save history to the file with an atomic write.

        Args:
            data: Root object to store.

        Raises:
            StorageIOError: If the file cannot be written.
        """
        content = self._encode(data.to_dict())

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            # Atomic write: write to temp file, then rename
            temp_fd, temp_path = tempfile.mkstemp(
                dir=self._path.parent,
                prefix=".benchtrail_",
                suffix=".tmp",
            )
        except OSError as e:
            raise StorageIOError("save", self._path, reason=str(e)) from e

        try:
            with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
                f.write(content)
            Path(temp_path).replace(self._path)
        except OSError as e:
            Path(temp_path).unlink(missing_ok=True)
            raise StorageIOError("save", self._path, reason=str(e)) from e


class DataJSFileStore(JSONFileStore):
    """Storage for the dashboard ``data.js`` script.

    The file holds a single assignment, ``window.BENCHMARK_DATA = {...}``,
    which the charting page loads with a script tag.

    Example:
        >>> store = DataJSFileStore("gh-pages/dev/bench/data.js")
        >>> data = await store.load()
    """

    def __init__(self, path: str | Path = "benchmark-data/data.js") -> None:
        super().__init__(path)

    def _decode(self, content: str) -> Any:
        match = _DATA_JS_PATTERN.match(content)
        if match is None:
            raise ValueError(f"expected a script starting with '{DATA_JS_PREFIX.strip()}'")
        return json.loads(match.group("body"))

    def _encode(self, data: dict[str, Any]) -> str:
        return DATA_JS_PREFIX + json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def store_for_path(path: str | Path) -> JSONFileStore:
    """Pick a file backend from the file extension.

    Args:
        path: History file location.

    Returns:
        DataJSFileStore for ``.js`` files, JSONFileStore otherwise.
    """
    path = Path(path)
    if path.suffix == ".js":
        return DataJSFileStore(path)
    return JSONFileStore(path)
