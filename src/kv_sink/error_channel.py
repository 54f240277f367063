"""
Error channels for records routed by the route-to-error disposition.

The pipeline engine normally owns the error channel; these implementations
cover running the stage standalone:

- CollectingErrorChannel keeps routed records in memory.
- NdjsonErrorChannel appends one JSON line per routed record to a file and
  can replay them later.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Protocol, Union, runtime_checkable

from loguru import logger

from .models import ErrorRecord
from .errors import SerializationError
from .serializer import as_fields


@runtime_checkable
class ErrorChannel(Protocol):
    def to_error(self, record: Any, description: str) -> None: ...


class CollectingErrorChannel:
    def __init__(self) -> None:
        self.records: List[ErrorRecord] = []

    def to_error(self, record: Any, description: str) -> None:
        self.records.append(ErrorRecord(record=record, description=description))

    def __len__(self) -> int:
        return len(self.records)


def _record_payload(record: Any) -> Any:
    """JSON-safe copy of a failed record; values JSON cannot hold are stringified."""
    try:
        fields = as_fields(record)
    except SerializationError:
        return repr(record)
    try:
        return json.loads(json.dumps(fields, default=str))
    except (TypeError, ValueError, RecursionError):
        # non-string keys, circular structures
        return repr(fields)


class NdjsonErrorChannel:
    """File-based error channel (NDJSON, one routed record per line)."""

    def __init__(self, path: Union[str, Path], *, mkdirs: bool = True):
        self.path = Path(path)
        if mkdirs:
            self.path.parent.mkdir(parents=True, exist_ok=True)

    def to_error(self, record: Any, description: str) -> None:
        line = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "description": description,
            "record": _record_payload(record),
        }
        with self.path.open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(line, ensure_ascii=False) + "\n")
        logger.debug(f"Routed record to {self.path}: {description}")

    def replay(self, max_records: int = 1000) -> List[ErrorRecord]:
        """Read back up to `max_records` routed records, oldest first."""
        if not self.path.exists():
            return []
        out: List[ErrorRecord] = []
        with self.path.open("r", encoding="utf-8") as fh:
            for line in fh:
                if len(out) >= max_records:
                    break
                if not line.strip():
                    continue
                d = json.loads(line)
                out.append(
                    ErrorRecord(record=d.get("record"), description=d.get("description", ""))
                )
        return out
