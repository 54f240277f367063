"""
Record → JSON object encoding.

Records are mappings of field name to value. Pydantic models and dataclass
instances are accepted and flattened to mappings first. Values outside the
JSON types are encoded the way the pipeline's JSON record generator writes
them: temporal values as ISO-8601 strings, decimals as numbers, UUIDs as
strings, bytes as base64.
"""

from __future__ import annotations

import base64
import codecs
import dataclasses
import json
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping
from uuid import UUID

from .errors import SerializationError


def as_fields(record: Any) -> dict:
    """Top-level field mapping of a record; anything that is not an object fails."""
    if isinstance(record, Mapping):
        return dict(record)
    if hasattr(record, "model_dump"):
        return record.model_dump(mode="python")
    if dataclasses.is_dataclass(record) and not isinstance(record, type):
        return dataclasses.asdict(record)
    raise SerializationError(
        f"Record must be a mapping of fields, got {type(record).__name__}"
    )


def _encode_value(o: Any) -> Any:
    if isinstance(o, Mapping):
        return dict(o)
    if isinstance(o, (datetime, date, time)):
        return o.isoformat()
    if isinstance(o, Decimal):
        if not o.is_finite():
            raise ValueError(f"Out of range decimal value is not JSON compliant: {o!r}")
        return int(o) if o == o.to_integral_value() else float(o)
    if isinstance(o, UUID):
        return str(o)
    if isinstance(o, Enum):
        return o.value
    if isinstance(o, (bytes, bytearray)):
        return base64.b64encode(bytes(o)).decode("ascii")
    raise TypeError(f"Object of type {type(o).__name__} is not JSON serializable")


class JsonSerializer:
    """Serializes one record at a time into a UTF-8 (or configured charset) JSON object."""

    def __init__(self, charset: str = "utf-8"):
        self.charset = charset

    def serialize(self, record: Any) -> bytes:
        fields = as_fields(record)
        try:
            text = json.dumps(
                fields,
                ensure_ascii=False,
                allow_nan=False,
                default=_encode_value,
            )
            return text.encode(self.charset)
        except (TypeError, ValueError, OverflowError, RecursionError) as e:
            # ValueError covers NaN/Infinity, circular references and UnicodeEncodeError
            raise SerializationError(str(e)) from e


class SerializerFactory:
    """Built once per stage activation; hands out serializers sharing its settings."""

    def __init__(self, charset: str = "utf-8"):
        codecs.lookup(charset)  # LookupError on unknown charsets
        self.charset = charset

    def create(self) -> JsonSerializer:
        return JsonSerializer(charset=self.charset)
