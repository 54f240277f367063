from __future__ import annotations

import json
from typing import Any, Mapping, Union

from .errors import MissingKeyError, SerializationError


def parse_document(serialized: bytes, charset: str = "utf-8") -> dict:
    """Parse serialized record bytes back into a document; only JSON objects qualify."""
    try:
        doc = json.loads(serialized.decode(charset))
    except ValueError as e:
        raise SerializationError(f"Serialized record is not valid JSON: {e}") from e
    if not isinstance(doc, dict):
        raise SerializationError(
            f"Serialized record is a JSON {type(doc).__name__}, expected an object"
        )
    return doc


def key_text(value: Any) -> str:
    """String form of a key value. Never fails."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return json.dumps(value)
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)


def extract_key(serialized: Union[bytes, Mapping[str, Any]], key_field: str) -> str:
    """Document key from the top-level field `key_field`.

    Accepts the serialized bytes or the already parsed document. Raises
    MissingKeyError when the field is absent, null or an empty string.
    """
    doc = serialized if isinstance(serialized, Mapping) else parse_document(serialized)
    value = doc.get(key_field)
    if value is None:
        raise MissingKeyError(f"Document key '{key_field}' is missing or null")
    key = key_text(value)
    if not key:
        raise MissingKeyError(f"Document key '{key_field}' is empty")
    return key
