"""
Pytest configuration and fixtures for kv-sink.

Provides fake store clients and settings shared by the unit tests.
"""

import os
from types import SimpleNamespace

import pytest

from kv_client import InMemoryStore, StoreWriteError
from kv_sink import SinkSettings


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Keep KV_SINK_* variables from the developer shell out of the tests."""
    for name in list(os.environ):
        if name.upper().startswith("KV_SINK_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def memory_store():
    """In-process store that records keys in write order."""
    return InMemoryStore(collection="test_docs")


@pytest.fixture
def rejecting_store():
    """Store mock that fails writes for keys listed in `reject` and records the rest."""
    calls = []
    reject = set()

    def _upsert(key, document):
        if key in reject:
            raise StoreWriteError(f"write rejected for {key}")
        calls.append((key, document))

    store = SimpleNamespace(upsert_document=_upsert, close=lambda: None)
    store.calls = calls
    store.reject = reject
    return store


@pytest.fixture
def make_settings():
    """Settings factory with a memory:// store and `id` as key field."""

    def _make(**overrides):
        values = {
            "store_url": "memory://",
            "target_collection": "test_docs",
            "document_key_field": "id",
        }
        values.update(overrides)
        return SinkSettings(**values)

    return _make
