"""
Prometheus metrics for the VidVeil backend.

HTTP RED metrics (Rate, Errors, Duration) plus per-engine fan-out metrics.
"""

from prometheus_client import (
    Counter,
    Histogram,
    Gauge,
    REGISTRY,
)

metrics_registry = REGISTRY

# HTTP Metrics (RED - Rate, Errors, Duration)
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
    registry=metrics_registry,
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
    registry=metrics_registry,
)

http_requests_in_progress = Gauge(
    "http_requests_in_progress",
    "Number of HTTP requests in progress",
    ["method", "endpoint"],
    registry=metrics_registry,
)

# Search fan-out
search_requests_total = Counter(
    "search_requests_total",
    "Total aggregated searches",
    ["mode"],  # buffered, stream
    registry=metrics_registry,
)

search_engine_duration_seconds = Histogram(
    "search_engine_duration_seconds",
    "Per-engine search duration in seconds",
    ["engine"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 15.0, 30.0],
    registry=metrics_registry,
)

search_engine_errors_total = Counter(
    "search_engine_errors_total",
    "Total per-engine search failures",
    ["engine", "error_type"],  # error_type: error, timeout, cancelled
    registry=metrics_registry,
)

search_results_count = Histogram(
    "search_results_count",
    "Number of results returned per engine",
    ["engine"],
    buckets=[0, 1, 5, 10, 20, 50, 100],
    registry=metrics_registry,
)

engine_circuit_open = Gauge(
    "engine_circuit_open",
    "1 while an engine's circuit breaker is open",
    ["engine"],
    registry=metrics_registry,
)
