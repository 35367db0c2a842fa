"""In-memory storage backend."""

from __future__ import annotations

from benchtrail.history.models import BenchmarkData


class MemoryStore:
    """In-memory storage for benchmark history.

    Keeps a serialized copy so callers cannot mutate stored state through
    the objects they passed in. Data is lost when the process exits.

    Example:
        >>> history = await HistoryStore.open(MemoryStore())
    """

    def __init__(self, initial: BenchmarkData | None = None) -> None:
        """Initialize the memory store.

        Args:
            initial: Optional history to start from.
        """
        self._data = initial.to_dict() if initial is not None else None
        self.save_count = 0

    async def load(self) -> BenchmarkData:
        """Load the stored history."""
        if self._data is None:
            return BenchmarkData()
        return BenchmarkData.from_dict(self._data)

    async def save(self, data: BenchmarkData) -> None:
        """Replace the stored history."""
        self._data = data.to_dict()
        self.save_count += 1
