"""
Prometheus metrics for the sink stage.

Import this module at app startup to register the collectors with the global
REGISTRY.
"""

from prometheus_client import Counter, Histogram

SINK_RECORDS_TOTAL = Counter(
    "kv_sink_records_total",
    "Records handled by the sink stage, by outcome",
    ["collection", "outcome"],  # outcome: written|discarded|routed|aborted
)

SINK_WRITE_LATENCY = Histogram(
    "kv_sink_write_latency_seconds",
    "Latency of successful document upserts",
    ["collection"],
    buckets=[0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

SINK_BATCHES_TOTAL = Counter(
    "kv_sink_batches_total",
    "Batches handled by the sink stage, by status",
    ["collection", "status"],  # status: success|aborted
)
