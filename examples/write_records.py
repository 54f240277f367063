"""
Demo: write a batch through SinkStage with each on-record-error disposition.

Uses the in-process memory:// store, so no database is needed.
"""

from loguru import logger

from kv_client import InMemoryStore
from kv_sink import CollectingErrorChannel, SinkSettings, SinkStage, StageAbortError

BATCH = [
    {"id": "a1", "v": 1},
    {"id": "", "v": 2},  # empty key
    {"id": "a3", "v": 3},
]


def main():
    for disposition in ("discard", "route_to_error", "abort_pipeline"):
        store = InMemoryStore(collection="demo")
        channel = CollectingErrorChannel()
        settings = SinkSettings(
            store_url="memory://",
            target_collection="demo",
            document_key_field="id",
            on_record_error=disposition,
        )
        stage = SinkStage(settings, store_factory=lambda *a, **kw: store, error_channel=channel)
        try:
            with stage:
                result = stage.write(BATCH)
            logger.info(f"{disposition}: {result} written={store.writes}")
        except StageAbortError as e:
            logger.warning(f"{disposition}: aborted at record #{e.record_index} ({e.description})")
        for rec in channel.records:
            logger.info(f"  routed {rec.record} -> {rec.description}")


if __name__ == "__main__":
    main()
