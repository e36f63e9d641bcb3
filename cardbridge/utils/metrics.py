"""
Prometheus-based metrics for production monitoring.
Provides /metrics endpoint for scraping.
"""
from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from fastapi import APIRouter, Response


# Counters
broker_messages_total = Counter(
    "broker_messages_total",
    "Inbound broker messages by topic kind and handling result",
    ["kind", "result"],  # result: relayed, malformed, ignored
)

broker_reconnects_total = Counter(
    "broker_reconnects_total",
    "Broker connection losses followed by a reconnect attempt",
)

broadcasts_total = Counter(
    "broadcasts_total",
    "Client broadcasts by event name",
    ["event"],
)

client_messages_dropped_total = Counter(
    "client_messages_dropped_total",
    "Messages dropped because a client queue was full",
    ["event"],
)

topups_total = Counter(
    "topups_total",
    "Top-up requests by outcome",
    ["result"],  # success, invalid, publish_failed
)

# Histograms
publish_duration_seconds = Histogram(
    "publish_duration_seconds",
    "Broker publish duration",
    buckets=[0.01, 0.05, 0.1, 0.5, 1, 2, 5],
)

# Gauges
connected_clients = Gauge(
    "connected_clients",
    "Currently connected push-channel clients",
)

broker_connected = Gauge(
    "broker_connected",
    "Broker link state (0=down, 1=subscribed)",
)


# Metrics endpoint router
router = APIRouter()


@router.get("/metrics")
def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint for scraping."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
