from __future__ import annotations

import time
from typing import Any, Iterable, Optional

from loguru import logger

from kv_client.base import StoreClient
from kv_client.errors import StoreWriteError

from .error_channel import CollectingErrorChannel, ErrorChannel
from .errors import (
    RECORD_ERRORS,
    ConfigurationFault,
    StageAbortError,
    describe_error,
)
from .keys import extract_key, parse_document
from .metrics import SINK_BATCHES_TOTAL, SINK_RECORDS_TOTAL, SINK_WRITE_LATENCY
from .models import BatchResult, ErrorDisposition
from .serializer import JsonSerializer


class BatchWriter:
    """
    Writes a batch record by record: serialize → extract key → upsert.

    A record that fails with SerializationError, MissingKeyError or
    StoreWriteError is handled by `on_record_error`:

    - DISCARD: dropped, only a debug log line remains.
    - ROUTE_TO_ERROR: handed to the error channel with the failure cause.
    - ABORT_PIPELINE: StageAbortError; records after it are not processed.

    Usage:
        writer = BatchWriter(store, JsonSerializer(), key_field="id",
                             on_record_error=ErrorDisposition.ROUTE_TO_ERROR)
        result = writer.write(records)
    """

    def __init__(
        self,
        store: StoreClient,
        serializer: JsonSerializer,
        *,
        key_field: str,
        on_record_error: ErrorDisposition = ErrorDisposition.ROUTE_TO_ERROR,
        error_channel: Optional[ErrorChannel] = None,
        collection: str = "default",
    ):
        self._store = store
        self._serializer = serializer
        self.key_field = key_field
        self.on_record_error = on_record_error
        self.error_channel = (
            error_channel if error_channel is not None else CollectingErrorChannel()
        )
        self.collection = collection

    # --------------------------- public API

    def write(self, batch: Iterable[Any]) -> BatchResult:
        """Process every record in order; raises only on abort or a bad disposition."""
        total = written = discarded = routed = 0

        for index, record in enumerate(batch):
            total += 1
            try:
                self._write_record(record)
            except RECORD_ERRORS as exc:
                disposition = self._dispose(index, record, exc)
                if disposition == ErrorDisposition.DISCARD:
                    discarded += 1
                else:
                    routed += 1
            else:
                written += 1

        SINK_BATCHES_TOTAL.labels(collection=self.collection, status="success").inc()
        logger.debug(
            f"Batch done (collection={self.collection}, total={total}, written={written}, "
            f"discarded={discarded}, routed={routed})"
        )
        return BatchResult(total=total, written=written, discarded=discarded, routed=routed)

    # --------------------------- internals

    def _write_record(self, record: Any) -> None:
        payload = self._serializer.serialize(record)
        document = parse_document(payload, self._serializer.charset)
        key = extract_key(document, self.key_field)

        logger.debug(f"Writing record with key '{key}' to {self.collection}")
        started = time.perf_counter()
        try:
            self._store.upsert_document(key, document)
        except StoreWriteError:
            raise
        except Exception as e:
            # clients outside kv_client may raise their own driver errors
            raise StoreWriteError(describe_error(e)) from e
        SINK_WRITE_LATENCY.labels(collection=self.collection).observe(
            time.perf_counter() - started
        )
        SINK_RECORDS_TOTAL.labels(collection=self.collection, outcome="written").inc()

    def _dispose(self, index: int, record: Any, exc: Exception) -> ErrorDisposition:
        description = describe_error(exc)
        disposition = self.on_record_error

        if disposition == ErrorDisposition.DISCARD:
            logger.debug(f"Discarding record #{index}: {description}")
            SINK_RECORDS_TOTAL.labels(collection=self.collection, outcome="discarded").inc()
            return ErrorDisposition.DISCARD

        if disposition == ErrorDisposition.ROUTE_TO_ERROR:
            logger.warning(f"Routing record #{index} to error channel: {description}")
            self.error_channel.to_error(record, description)
            SINK_RECORDS_TOTAL.labels(collection=self.collection, outcome="routed").inc()
            return ErrorDisposition.ROUTE_TO_ERROR

        if disposition == ErrorDisposition.ABORT_PIPELINE:
            logger.error(f"Aborting batch at record #{index}: {description}")
            SINK_RECORDS_TOTAL.labels(collection=self.collection, outcome="aborted").inc()
            SINK_BATCHES_TOTAL.labels(collection=self.collection, status="aborted").inc()
            raise StageAbortError(description, record_index=index) from exc

        raise ConfigurationFault(f"Unknown on-record-error value '{disposition}'") from exc
