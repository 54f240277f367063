"""
Key-value sink stage.

Writes batches of pipeline records into a key-value store, one document per
record, keyed by a configured record field. Failed records are discarded,
routed to an error channel, or abort the batch, per `on_record_error`.

Usage:
    from kv_sink import SinkSettings, SinkStage

    settings = SinkSettings(
        store_url="postgresql://...",
        target_collection="events",
        document_key_field="id",
        on_record_error="route_to_error",
    )
    with SinkStage(settings) as stage:
        result = stage.write(records)
"""

from .error_channel import CollectingErrorChannel, ErrorChannel, NdjsonErrorChannel
from .errors import (
    ConfigurationFault,
    MissingKeyError,
    SerializationError,
    SinkError,
    StageAbortError,
    StageStateError,
)
from .keys import extract_key, parse_document
from .models import BatchResult, ErrorDisposition, ErrorRecord
from .serializer import JsonSerializer, SerializerFactory
from .settings import SinkSettings, get_settings
from .stage import SinkStage
from .writer import BatchWriter

__version__ = "0.1.0"
__all__ = [
    "SinkStage",
    "SinkSettings",
    "get_settings",
    "BatchWriter",
    "BatchResult",
    "ErrorDisposition",
    "ErrorRecord",
    "ErrorChannel",
    "CollectingErrorChannel",
    "NdjsonErrorChannel",
    "JsonSerializer",
    "SerializerFactory",
    "extract_key",
    "parse_document",
    "SinkError",
    "SerializationError",
    "MissingKeyError",
    "StageAbortError",
    "ConfigurationFault",
    "StageStateError",
]
