"""
Integration tests for the PostgreSQL backend (requires a live database).

Run with: KV_SINK_TEST_DSN=postgresql://... pytest -v tests/integration -m integration
"""

import os
import uuid

import pytest

from kv_client import open_store
from kv_sink import CollectingErrorChannel, SinkSettings, SinkStage

pytestmark = pytest.mark.integration


@pytest.fixture
def dsn():
    value = os.getenv("KV_SINK_TEST_DSN")
    if not value:
        pytest.skip("Set KV_SINK_TEST_DSN for integration tests")
    return value


@pytest.fixture
def collection(dsn):
    name = f"kv_sink_it_{uuid.uuid4().hex[:8]}"
    yield name
    store = open_store(dsn, collection=name)
    try:
        with store._conn() as conn, conn.cursor() as cur:
            cur.execute(f'DROP TABLE IF EXISTS "{name}"')
    finally:
        store.close()


def test_batch_roundtrip(dsn, collection):
    settings = SinkSettings(
        store_url=dsn,
        target_collection=collection,
        document_key_field="id",
        on_record_error="route_to_error",
    )
    channel = CollectingErrorChannel()
    batch = [{"id": "a1", "v": 1}, {"id": "", "v": 2}, {"id": "a3", "v": {"n": [1, 2]}}]

    with SinkStage(settings, error_channel=channel) as stage:
        result = stage.write(batch)
        stage.write([{"id": "a1", "v": 10}])
        store = stage.store
        assert store.get_document("a1") == {"id": "a1", "v": 10}
        assert store.get_document("a3") == {"id": "a3", "v": {"n": [1, 2]}}
        assert store.health()

    assert result.written == 2
    assert len(channel) == 1
