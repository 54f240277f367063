from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Mapping, Optional

import psycopg
from loguru import logger
from psycopg.types.json import Jsonb
from psycopg_pool import ConnectionPool

from . import sql as q
from .base import StoreConfig
from .errors import map_db_error


class PostgresKVStore:
    """Key-value documents in a PostgreSQL JSONB table, one table per collection."""

    def __init__(
        self,
        cfg: StoreConfig,
        *,
        app_name: Optional[str] = "kv_sink",
        pool_max: int = 4,
    ):
        self._cfg = cfg
        self._app_name = app_name
        self._table = q.collection_identifier(cfg.collection)

        kwargs: dict[str, Any] = {}
        if cfg.username:
            kwargs["user"] = cfg.username
        if cfg.password:
            kwargs["password"] = cfg.password
        self._pool = ConnectionPool(
            conninfo=cfg.url,
            min_size=1,
            max_size=pool_max,
            timeout=cfg.connect_timeout,
            kwargs=kwargs,
            open=False,
        )

    @classmethod
    def connect(cls, cfg: StoreConfig, **kwargs) -> "PostgresKVStore":
        """Open the pool, wait for a first connection and create the table if missing."""
        store = cls(cfg, **kwargs)
        try:
            store._pool.open(wait=True, timeout=cfg.connect_timeout)
            store.ensure_collection()
        except psycopg.Error as e:
            store.close()
            raise map_db_error(e, during="connect") from e
        logger.debug(f"Postgres store ready (collection={cfg.collection})")
        return store

    def close(self) -> None:
        self._pool.close()

    # ---------- internal helpers ----------

    @contextmanager
    def _conn(self):
        with self._pool.connection() as conn:
            if self._app_name:
                with conn.cursor() as cur:
                    cur.execute("SET application_name = %s", (self._app_name,))
            try:
                yield conn
                conn.commit()
            except Exception:
                conn.rollback()
                raise

    # ---------- admin / health ----------

    def ensure_collection(self) -> None:
        with self._conn() as conn, conn.cursor() as cur:
            cur.execute(q.create_collection_statement(self._table))

    def health(self) -> bool:
        with self._conn() as conn, conn.cursor() as cur:
            cur.execute(q.HEALTH)
            _ = cur.fetchone()
            return True

    # ---------- reads / writes ----------

    def get_document(self, key: str) -> Optional[dict]:
        with self._conn() as conn, conn.cursor() as cur:
            cur.execute(q.get_document_select(self._table), {"doc_key": key})
            row = cur.fetchone()
            return row[0] if row else None

    def upsert_document(self, key: str, document: Mapping[str, Any]) -> None:
        try:
            with self._conn() as conn, conn.cursor() as cur:
                cur.execute(
                    q.upsert_document_statement(self._table),
                    {"doc_key": key, "doc": Jsonb(dict(document))},
                )
        except psycopg.Error as e:
            raise map_db_error(e) from e
