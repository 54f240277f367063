"""
Custom exceptions for the key-value store clients.

Store backends raise these so the sink stage can classify failures without
knowing which driver sits underneath.
"""


class StoreOperationalError(Exception):
    """Base operational error for store clients."""

    pass


class StoreWriteError(StoreOperationalError):
    """The backend rejected or failed a single document write."""

    pass


class StoreConnectionError(StoreOperationalError, ConnectionError):
    """The backend could not be reached while opening a client."""

    pass


class UnsupportedStoreError(StoreOperationalError, ValueError):
    """No client is registered for the store URL scheme."""

    pass


class InvalidCollectionError(StoreOperationalError, ValueError):
    """The target collection name is not valid for the backend."""

    pass


def map_db_error(e: Exception, *, during: str = "write") -> StoreOperationalError:
    import psycopg.errors as E

    if isinstance(e, StoreOperationalError):
        return e
    if during == "connect":
        return StoreConnectionError(str(e))
    if isinstance(e, E.UndefinedTable):
        return StoreWriteError(f"collection table is missing: {e}")
    return StoreWriteError(str(e))
