"""
Observability infrastructure for the VidVeil backend.

Provides:
- Structured logging with correlation IDs
- Sentry error tracking
- Prometheus metrics
- Health check utilities
"""

from .logging import get_logger, correlation_id_context, get_correlation_id
from .metrics import (
    metrics_registry,
    http_requests_total,
    http_request_duration_seconds,
    http_requests_in_progress,
    search_requests_total,
    search_engine_duration_seconds,
    search_engine_errors_total,
    search_results_count,
)

__all__ = [
    "get_logger",
    "correlation_id_context",
    "get_correlation_id",
    "metrics_registry",
    "http_requests_total",
    "http_request_duration_seconds",
    "http_requests_in_progress",
    "search_requests_total",
    "search_engine_duration_seconds",
    "search_engine_errors_total",
    "search_results_count",
]
