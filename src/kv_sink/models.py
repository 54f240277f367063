from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

_ALIASES = {
    "TO_ERROR": "ROUTE_TO_ERROR",
    "STOP_PIPELINE": "ABORT_PIPELINE",
}


class ErrorDisposition(str, Enum):
    """What happens to a record whose write failed."""

    DISCARD = "discard"
    ROUTE_TO_ERROR = "route_to_error"
    ABORT_PIPELINE = "abort_pipeline"

    @classmethod
    def _missing_(cls, value: object):
        # Accept member names in any case, plus the older TO_ERROR/STOP_PIPELINE names
        if isinstance(value, str):
            name = value.strip().upper().replace("-", "_")
            name = _ALIASES.get(name, name)
            if name in cls.__members__:
                return cls[name]
        return None


@dataclass(frozen=True)
class ErrorRecord:
    """A record handed to an error channel together with its failure cause."""

    record: Any
    description: str


@dataclass(frozen=True)
class BatchResult:
    """Per-call outcome counts; failures under discard/route do not fail the call."""

    total: int = 0
    written: int = 0
    discarded: int = 0
    routed: int = 0

    @property
    def failed(self) -> int:
        return self.discarded + self.routed
