"""Prometheus metrics for the retrieval pipeline."""

from prometheus_client import Counter, Histogram

BACKEND_REQUESTS = Counter(
    "cwtail_backend_requests_total", "Total GetMetricStatistics calls issued"
)
BACKEND_ERRORS = Counter(
    "cwtail_backend_errors_total",
    "Total failed GetMetricStatistics calls",
    ["kind"],
)
FETCH_SPLITS = Counter(
    "cwtail_fetch_splits_total", "Total queries split after a backend rejection"
)
SUBQUERIES_DROPPED = Counter(
    "cwtail_subqueries_dropped_total", "Total split sub-queries dropped on failure"
)
DATAPOINTS_RECEIVED = Counter(
    "cwtail_datapoints_received_total", "Total raw datapoints returned by fetches"
)
TICKS = Counter("cwtail_ticks_total", "Total completed tailing ticks")
TICK_ERRORS = Counter("cwtail_tick_errors_total", "Total tailing ticks that failed")

FETCH_LATENCY = Histogram(
    "cwtail_fetch_latency_seconds", "Time spent in one fetch including any split"
)
