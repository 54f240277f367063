"""
Exceptions raised by the sink stage.

Record-level errors (SerializationError, MissingKeyError, and the store's
StoreWriteError) are caught per record and handed to the configured
disposition. The rest propagate out of the stage.
"""

from kv_client.errors import StoreWriteError


class SinkError(Exception):
    """Base error for the sink stage."""

    pass


class SerializationError(SinkError):
    """A record cannot be encoded as a JSON object."""

    pass


class MissingKeyError(SinkError):
    """The document key field is absent, null or empty."""

    pass


class StageAbortError(SinkError):
    """A record failed under the abort-pipeline disposition; the batch stops here."""

    def __init__(self, description: str, record_index: int | None = None):
        super().__init__(description)
        self.description = description
        self.record_index = record_index


class ConfigurationFault(SinkError):
    """Unrecognized on-record-error disposition. Fatal, never a record error."""

    pass


class StageStateError(SinkError, RuntimeError):
    """Write attempted on a stage that is not active, or a second activation."""

    pass


# Failure classes handled at the per-record boundary
RECORD_ERRORS = (SerializationError, MissingKeyError, StoreWriteError)


def describe_error(exc: BaseException) -> str:
    """Human-readable cause, e.g. "MissingKeyError: Document key 'id' is missing"."""
    return f"{type(exc).__name__}: {exc}"
