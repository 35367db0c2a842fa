"""Storage backends for benchmark history.

This module provides the storage protocol and its implementations for
persisting the history root object.

Example:
    >>> from benchtrail.history.storage import DataJSFileStore
    >>> store = DataJSFileStore("gh-pages/dev/bench/data.js")
    >>> data = await store.load()
"""

from __future__ import annotations

from benchtrail.history.storage.base import StorageProtocol
from benchtrail.history.storage.json_store import DataJSFileStore, JSONFileStore, store_for_path
from benchtrail.history.storage.memory import MemoryStore

__all__ = [
    "DataJSFileStore",
    "JSONFileStore",
    "MemoryStore",
    "StorageProtocol",
    "store_for_path",
]
