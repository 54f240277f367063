from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol, runtime_checkable
from urllib.parse import urlsplit

from .errors import UnsupportedStoreError


@runtime_checkable
class StoreClient(Protocol):
    """Narrow write contract the sink stage consumes.

    Implementations block until the backend acknowledges the write, and
    raise StoreWriteError when it does not. Writes overwrite by key.
    """

    def upsert_document(self, key: str, document: Mapping[str, Any]) -> None: ...

    def close(self) -> None: ...


@dataclass(frozen=True)
class StoreConfig:
    url: str
    collection: str
    username: Optional[str] = None
    password: Optional[str] = None
    connect_timeout: float = 10.0

    @property
    def scheme(self) -> str:
        return urlsplit(self.url).scheme.lower()


def open_store(
    url: str,
    *,
    collection: str,
    username: Optional[str] = None,
    password: Optional[str] = None,
    connect_timeout: float = 10.0,
) -> StoreClient:
    """Open a connected client for `url`, chosen by its scheme.

    postgresql:// and postgres:// use a JSONB table per collection,
    couchbase:// and couchbases:// use the Couchbase SDK, memory:// keeps
    documents in process.
    """
    cfg = StoreConfig(
        url=url,
        collection=collection,
        username=username,
        password=password,
        connect_timeout=connect_timeout,
    )
    scheme = cfg.scheme

    if scheme in ("postgresql", "postgres"):
        from .postgres import PostgresKVStore

        return PostgresKVStore.connect(cfg)
    if scheme in ("couchbase", "couchbases"):
        from .couchbase_store import CouchbaseStore

        return CouchbaseStore.connect(cfg)
    if scheme == "memory":
        from .memory import InMemoryStore

        return InMemoryStore(collection=collection)
    raise UnsupportedStoreError(f"No store client for URL scheme '{scheme}' ({url!r})")
