"""Prometheus metrics export."""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Request metrics
request_duration = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path", "status"],
)

# Remote database function calls
rpc_calls_total = Counter(
    "rpc_calls_total",
    "Total remote database function calls",
    ["function", "status"],
)

# Cell updates routed through the dispatcher
cell_updates_total = Counter(
    "cell_updates_total",
    "Total cell updates",
    ["table", "mode", "status"],  # mode: simple or composite
)

# How the active tenant was resolved
tenant_resolutions_total = Counter(
    "tenant_resolutions_total",
    "Total tenant resolutions by source",
    ["source"],
)


def get_metrics_response() -> Response:
    """Get Prometheus metrics as HTTP response."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
