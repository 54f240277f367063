"""
Unit tests for SinkStage activation, teardown and write gating.
"""

from unittest.mock import MagicMock

import pytest

from kv_client import InMemoryStore, StoreConnectionError
from kv_sink import (
    CollectingErrorChannel,
    NdjsonErrorChannel,
    SinkStage,
    StageAbortError,
    StageStateError,
)


class TestActivate:
    def test_factory_receives_settings(self, make_settings):
        factory = MagicMock(return_value=InMemoryStore())
        settings = make_settings(
            store_url="postgresql://db/kv",
            username="svc",
            password="s3cret",
            connect_timeout=3.0,
        )

        SinkStage(settings, store_factory=factory).activate()

        factory.assert_called_once_with(
            "postgresql://db/kv",
            collection="test_docs",
            username="svc",
            password="s3cret",
            connect_timeout=3.0,
        )

    def test_default_factory_opens_memory_store(self, make_settings):
        stage = SinkStage(make_settings()).activate()
        assert isinstance(stage.store, InMemoryStore)
        assert stage.active

    def test_connection_error_leaves_stage_inactive(self, make_settings):
        factory = MagicMock(side_effect=StoreConnectionError("connection refused"))
        stage = SinkStage(make_settings(), store_factory=factory)

        with pytest.raises(StoreConnectionError):
            stage.activate()

        assert not stage.active
        assert stage.store is None
        with pytest.raises(StageStateError):
            stage.write([{"id": "a1"}])

    def test_connection_error_is_builtin_connection_error(self, make_settings):
        factory = MagicMock(side_effect=StoreConnectionError("connection refused"))
        with pytest.raises(ConnectionError):
            SinkStage(make_settings(), store_factory=factory).activate()

    def test_double_activate(self, make_settings):
        stage = SinkStage(make_settings()).activate()
        with pytest.raises(StageStateError, match="already active"):
            stage.activate()

    def test_error_file_selects_ndjson_channel(self, make_settings, tmp_path):
        stage = SinkStage(make_settings(error_file=tmp_path / "errors.ndjson")).activate()
        assert isinstance(stage.error_channel, NdjsonErrorChannel)

    def test_default_error_channel_collects(self, make_settings):
        stage = SinkStage(make_settings()).activate()
        assert isinstance(stage.error_channel, CollectingErrorChannel)


class TestDeactivate:
    def test_releases_connector(self, make_settings):
        store = InMemoryStore()
        stage = SinkStage(make_settings(), store_factory=lambda *a, **kw: store).activate()

        stage.deactivate()

        assert store.closed
        assert stage.store is None
        assert not stage.active

    def test_is_idempotent(self, make_settings):
        store = MagicMock()
        stage = SinkStage(make_settings(), store_factory=lambda *a, **kw: store).activate()

        stage.deactivate()
        stage.deactivate()

        store.close.assert_called_once()

    def test_after_failed_activate(self, make_settings):
        factory = MagicMock(side_effect=StoreConnectionError("unreachable"))
        stage = SinkStage(make_settings(), store_factory=factory)
        with pytest.raises(StoreConnectionError):
            stage.activate()

        stage.deactivate()
        stage.deactivate()
        assert stage.store is None

    def test_close_failure_still_releases(self, make_settings):
        store = MagicMock()
        store.close.side_effect = RuntimeError("socket already closed")
        stage = SinkStage(make_settings(), store_factory=lambda *a, **kw: store).activate()

        stage.deactivate()

        assert stage.store is None
        assert not stage.active

    def test_never_activated(self, make_settings):
        SinkStage(make_settings()).deactivate()

    def test_can_reactivate(self, make_settings):
        stage = SinkStage(make_settings())
        stage.activate()
        stage.deactivate()
        stage.activate()
        assert stage.active


class TestWrite:
    def test_write_before_activate(self, make_settings):
        with pytest.raises(StageStateError, match="not active"):
            SinkStage(make_settings()).write([{"id": "a1"}])

    def test_write_after_deactivate(self, make_settings):
        stage = SinkStage(make_settings()).activate()
        stage.deactivate()
        with pytest.raises(StageStateError):
            stage.write([{"id": "a1"}])

    def test_stage_error_is_runtime_error(self, make_settings):
        with pytest.raises(RuntimeError):
            SinkStage(make_settings()).write([])

    def test_context_manager(self, make_settings):
        store = InMemoryStore()
        with SinkStage(make_settings(), store_factory=lambda *a, **kw: store) as stage:
            result = stage.write([{"id": "a1", "v": 1}, {"id": "a2", "v": 2}])

        assert result.written == 2
        assert store.writes == ["a1", "a2"]
        assert store.closed

    def test_context_manager_releases_on_abort(self, make_settings):
        store = InMemoryStore()
        settings = make_settings(on_record_error="abort_pipeline")

        with pytest.raises(StageAbortError):
            with SinkStage(settings, store_factory=lambda *a, **kw: store) as stage:
                stage.write([{"id": "a1"}, {"v": 2}])

        assert store.closed
        assert store.writes == ["a1"]

    def test_routes_to_supplied_channel(self, make_settings):
        channel = CollectingErrorChannel()
        with SinkStage(make_settings(), error_channel=channel) as stage:
            stage.write([{"id": "a1"}, {"id": None}])

        assert len(channel) == 1
        assert channel.records[0].description.startswith("MissingKeyError")
