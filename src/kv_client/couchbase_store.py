"""
Couchbase store client (requires the optional `couchbase` extra).

`collection` is a bucket name, optionally followed by `.scope.collection`;
a bare bucket writes to its default collection.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Mapping

from couchbase.auth import PasswordAuthenticator
from couchbase.cluster import Cluster
from couchbase.exceptions import CouchbaseException
from couchbase.options import ClusterOptions
from loguru import logger

from .base import StoreConfig
from .errors import InvalidCollectionError, StoreConnectionError, StoreWriteError


def _split_keyspace(name: str) -> tuple[str, str | None, str | None]:
    parts = name.split(".")
    if len(parts) == 1 and parts[0]:
        return parts[0], None, None
    if len(parts) == 3 and all(parts):
        return parts[0], parts[1], parts[2]
    raise InvalidCollectionError(
        f"Invalid Couchbase keyspace {name!r}; use bucket or bucket.scope.collection"
    )


class CouchbaseStore:
    def __init__(self, cluster: Cluster, collection: Any):
        self._cluster = cluster
        self._collection = collection

    @classmethod
    def connect(cls, cfg: StoreConfig) -> "CouchbaseStore":
        bucket_name, scope_name, collection_name = _split_keyspace(cfg.collection)
        auth = PasswordAuthenticator(cfg.username or "", cfg.password or "")
        cluster = None
        try:
            cluster = Cluster(cfg.url, ClusterOptions(auth))
            cluster.wait_until_ready(timedelta(seconds=cfg.connect_timeout))
            bucket = cluster.bucket(bucket_name)
            if scope_name is None:
                collection = bucket.default_collection()
            else:
                collection = bucket.scope(scope_name).collection(collection_name)
        except CouchbaseException as e:
            if cluster is not None:
                cluster.close()
            raise StoreConnectionError(str(e)) from e
        logger.debug(f"Couchbase bucket ready (keyspace={cfg.collection})")
        return cls(cluster, collection)

    def upsert_document(self, key: str, document: Mapping[str, Any]) -> None:
        try:
            self._collection.upsert(key, dict(document))
        except CouchbaseException as e:
            raise StoreWriteError(str(e)) from e

    def close(self) -> None:
        self._cluster.close()
