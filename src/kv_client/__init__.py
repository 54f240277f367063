"""
Key-value store clients.

Usage:
    from kv_client import open_store

    store = open_store("postgresql://...", collection="events", username="u", password="p")
    store.upsert_document("evt-1", {"id": "evt-1", "v": 1})
    store.close()
"""

from .base import StoreClient, StoreConfig, open_store
from .errors import (
    InvalidCollectionError,
    StoreConnectionError,
    StoreOperationalError,
    StoreWriteError,
    UnsupportedStoreError,
)
from .memory import InMemoryStore

__version__ = "0.1.0"
__all__ = [
    "StoreClient",
    "StoreConfig",
    "open_store",
    "InMemoryStore",
    "StoreOperationalError",
    "StoreWriteError",
    "StoreConnectionError",
    "UnsupportedStoreError",
    "InvalidCollectionError",
]
