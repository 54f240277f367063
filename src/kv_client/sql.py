from __future__ import annotations

from psycopg import sql as psql

from .errors import InvalidCollectionError

HEALTH = "SELECT 1"


def collection_identifier(collection: str) -> psql.Identifier:
    """`name` or `schema.name` as a quoted identifier."""
    parts = [p for p in collection.split(".") if p]
    if not parts or len(parts) > 2:
        raise InvalidCollectionError(f"Invalid collection name: {collection!r}")
    return psql.Identifier(*parts)


def create_collection_statement(table: psql.Identifier) -> psql.Composed:
    return psql.SQL(
        "CREATE TABLE IF NOT EXISTS {} ("
        "doc_key TEXT PRIMARY KEY, "
        "doc JSONB NOT NULL, "
        "updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW())"
    ).format(table)


def upsert_document_statement(table: psql.Identifier) -> psql.Composed:
    """INSERT ... ON CONFLICT (doc_key) DO UPDATE with named parameters (%(name)s)."""
    return psql.SQL(
        "INSERT INTO {} (doc_key, doc) VALUES ({}, {}) "
        "ON CONFLICT (doc_key) DO UPDATE SET doc = EXCLUDED.doc, updated_at = NOW()"
    ).format(table, psql.Placeholder("doc_key"), psql.Placeholder("doc"))


def get_document_select(table: psql.Identifier) -> psql.Composed:
    return psql.SQL("SELECT doc FROM {} WHERE doc_key = {}").format(
        table, psql.Placeholder("doc_key")
    )
