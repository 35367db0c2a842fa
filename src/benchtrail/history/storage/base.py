"""Base protocol for benchmark history storage backends.

This module defines the StorageProtocol that all storage backends must implement.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from benchtrail.history.models import BenchmarkData


@runtime_checkable
class StorageProtocol(Protocol):
    """Protocol for benchmark history storage backends.

    A backend persists the whole root object. HistoryStore owns the
    in-memory state and calls ``save`` once per accepted append.

    Example:
        >>> class MyStorage:
        ...     async def load(self) -> BenchmarkData: ...
        ...     async def save(self, data: BenchmarkData) -> None: ...
        >>> isinstance(MyStorage(), StorageProtocol)
        True
    """

    async def load(self) -> BenchmarkData:
        """Load the persisted history.

        Returns:
            The stored root object, or an empty one if nothing is stored yet.

        Raises:
            StorageIOError: If the stored data cannot be read or decoded.
        """
        ...

    async def save(self, data: BenchmarkData) -> None:
        """Persist the full history.

        Args:
            data: Root object to store.

        Raises:
            StorageIOError: If the data cannot be written.
        """
        ...
