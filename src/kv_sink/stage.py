"""
Sink stage lifecycle.

SinkStage owns the store connector and the serializer factory for the span of
one activation, and writes batches through a BatchWriter in between.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Optional

from loguru import logger

from kv_client.base import StoreClient, open_store

from .error_channel import CollectingErrorChannel, ErrorChannel, NdjsonErrorChannel
from .errors import StageStateError, describe_error
from .models import BatchResult
from .serializer import SerializerFactory
from .settings import SinkSettings
from .writer import BatchWriter

StoreFactory = Callable[..., StoreClient]


class SinkStage:
    """
    Usage:
        settings = SinkSettings(store_url="postgresql://...", target_collection="events",
                                document_key_field="id")
        with SinkStage(settings) as stage:
            stage.write(records)
    """

    def __init__(
        self,
        settings: SinkSettings,
        *,
        store_factory: Optional[StoreFactory] = None,
        error_channel: Optional[ErrorChannel] = None,
    ):
        self.settings = settings
        self._store_factory = store_factory or open_store
        self._error_channel = error_channel

        self._store: Optional[StoreClient] = None
        self._serializers: Optional[SerializerFactory] = None
        self._writer: Optional[BatchWriter] = None

    @property
    def active(self) -> bool:
        return self._writer is not None

    @property
    def store(self) -> Optional[StoreClient]:
        return self._store

    @property
    def error_channel(self) -> Optional[ErrorChannel]:
        return self._writer.error_channel if self._writer is not None else self._error_channel

    def activate(self) -> "SinkStage":
        """Open the connector; StoreConnectionError leaves the stage inactive."""
        if self.active:
            raise StageStateError("Stage is already active")

        s = self.settings
        logger.info(
            f"Connecting to store {s.store_url} "
            f"(collection={s.target_collection}, username={s.username})"
        )
        serializers = SerializerFactory()
        error_channel = self._error_channel
        if error_channel is None:
            error_channel = (
                NdjsonErrorChannel(s.error_file) if s.error_file else CollectingErrorChannel()
            )

        store = self._store_factory(
            s.store_url,
            collection=s.target_collection,
            username=s.username,
            password=s.password_value,
            connect_timeout=s.connect_timeout,
        )

        self._store = store
        self._serializers = serializers
        self._writer = BatchWriter(
            store,
            serializers.create(),
            key_field=s.document_key_field,
            on_record_error=s.on_record_error,
            error_channel=error_channel,
            collection=s.target_collection,
        )
        logger.info(
            f"Sink stage active (key field={s.document_key_field}, "
            f"on_record_error={s.on_record_error.value})"
        )
        return self

    def deactivate(self) -> None:
        """Release the connector. Safe to call repeatedly or after a failed activate."""
        store, self._store = self._store, None
        self._writer = None
        self._serializers = None
        if store is None:
            return
        try:
            store.close()
        except Exception as e:
            logger.warning(f"Store close failed during deactivate: {describe_error(e)}")
        else:
            logger.info("Sink stage deactivated")

    def write(self, batch: Iterable[Any]) -> BatchResult:
        if self._writer is None:
            raise StageStateError("Stage is not active; call activate() before write()")
        return self._writer.write(batch)

    def __enter__(self) -> "SinkStage":
        return self.activate()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.deactivate()
