from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from loguru import logger
from pydantic import ValidationError

from kv_client.errors import StoreOperationalError

from .errors import ConfigurationFault, StageAbortError
from .models import ErrorDisposition
from .settings import SinkSettings
from .stage import SinkStage
from .utils import chunked, iter_ndjson

app = typer.Typer(help="kv-sink operational CLI")

# ---------------------------
# Common options
# ---------------------------


def store_url_opt() -> str:
    return typer.Option(
        ...,
        "--store-url",
        envvar="KV_SINK_STORE_URL",
        help="postgresql://, couchbase:// or memory://",
    )


def collection_opt() -> str:
    return typer.Option(
        ..., "--collection", envvar="KV_SINK_TARGET_COLLECTION", help="Target bucket/table"
    )


def username_opt() -> Optional[str]:
    return typer.Option(None, "--username", envvar="KV_SINK_USERNAME")


def password_opt() -> Optional[str]:
    return typer.Option(None, "--password", envvar="KV_SINK_PASSWORD")


def timeout_opt() -> float:
    return typer.Option(10.0, "--connect-timeout", envvar="KV_SINK_CONNECT_TIMEOUT")


def _settings(**values) -> SinkSettings:
    try:
        return SinkSettings(**values)
    except ValidationError as e:
        logger.error(f"Invalid configuration: {e}")
        raise typer.Exit(code=1)


# ---------------------------
# Commands
# ---------------------------


@app.command("ping")
def ping(
    store_url: str = store_url_opt(),
    collection: str = collection_opt(),
    username: Optional[str] = username_opt(),
    password: Optional[str] = password_opt(),
    connect_timeout: float = timeout_opt(),
    key_field: str = typer.Option(
        "id", "--key-field", envvar="KV_SINK_DOCUMENT_KEY_FIELD", help="Field used as document key"
    ),
):
    """Activate and deactivate a sink stage against the configured store."""
    settings = _settings(
        store_url=store_url,
        target_collection=collection,
        document_key_field=key_field,
        username=username,
        password=password,
        connect_timeout=connect_timeout,
    )
    try:
        with SinkStage(settings) as stage:
            store = stage.store
            ok = store.health() if hasattr(store, "health") else True
    except StoreOperationalError as e:
        logger.error(f"Store unreachable: {e}")
        raise typer.Exit(code=1)
    typer.echo(json.dumps({"ok": ok}, indent=2))


@app.command("write")
def write(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="NDJSON records (.gz ok)"),
    key_field: str = typer.Option(
        ..., "--key-field", envvar="KV_SINK_DOCUMENT_KEY_FIELD", help="Field used as document key"
    ),
    on_record_error: ErrorDisposition = typer.Option(
        ErrorDisposition.ROUTE_TO_ERROR,
        "--on-record-error",
        envvar="KV_SINK_ON_RECORD_ERROR",
        case_sensitive=False,
    ),
    error_file: Optional[Path] = typer.Option(
        None, "--error-file", envvar="KV_SINK_ERROR_FILE", help="NDJSON file for routed records"
    ),
    batch_size: int = typer.Option(500, "--batch-size", min=1),
    store_url: str = store_url_opt(),
    collection: str = collection_opt(),
    username: Optional[str] = username_opt(),
    password: Optional[str] = password_opt(),
    connect_timeout: float = timeout_opt(),
):
    """Write every record of an NDJSON file to the store, batch by batch."""
    settings = _settings(
        store_url=store_url,
        target_collection=collection,
        document_key_field=key_field,
        username=username,
        password=password,
        on_record_error=on_record_error,
        connect_timeout=connect_timeout,
        error_file=error_file,
    )

    summary = {"batches": 0, "total": 0, "written": 0, "discarded": 0, "routed": 0}
    try:
        with SinkStage(settings) as stage:
            for batch in chunked(iter_ndjson(path), batch_size):
                result = stage.write(batch)
                summary["batches"] += 1
                summary["total"] += result.total
                summary["written"] += result.written
                summary["discarded"] += result.discarded
                summary["routed"] += result.routed
    except StageAbortError as e:
        logger.error(
            f"Pipeline aborted in batch {summary['batches'] + 1} "
            f"at record #{e.record_index}: {e.description}"
        )
        raise typer.Exit(code=2)
    except (StoreOperationalError, ConfigurationFault) as e:
        logger.error(f"Write failed: {e}")
        raise typer.Exit(code=1)
    except ValueError as e:
        logger.error(f"Bad input: {e}")
        raise typer.Exit(code=1)

    if error_file is not None:
        summary["error_file"] = str(error_file)
    logger.success(f"Wrote {summary['written']} of {summary['total']} records to {collection}")
    typer.echo(json.dumps(summary, indent=2))


if __name__ == "__main__":
    app()
