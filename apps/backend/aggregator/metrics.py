"""Structured search logging.

Every search gets its own :class:`SearchMetrics` record; engine outcomes
are appended as they complete and the whole record is logged once when
the search finishes. Prometheus counters are updated separately by the
executor.
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

logger = logging.getLogger("aggregator.metrics")


@dataclass
class EngineMetrics:
    """Outcome of one engine call."""
    engine: str
    status: str  # ok, error, timeout, cancelled
    result_count: int
    latency_ms: float
    error_message: Optional[str] = None


@dataclass
class SearchMetrics:
    """Aggregated metrics for a single search."""
    query: str = ""
    mode: str = "buffered"
    total_results: int = 0
    filtered_results: int = 0
    engines_called: int = 0
    engines_succeeded: int = 0
    engines_failed: int = 0
    total_latency_ms: float = 0.0
    engine_metrics: List[EngineMetrics] = field(default_factory=list)

    def success_rate(self) -> float:
        if self.engines_called == 0:
            return 0.0
        return self.engines_succeeded / self.engines_called

    def has_results(self) -> bool:
        return self.filtered_results > 0

    def record_engine(
        self,
        engine: str,
        status: str,
        result_count: int,
        latency_ms: float,
        error_message: Optional[str] = None,
    ) -> None:
        self.engine_metrics.append(
            EngineMetrics(
                engine=engine,
                status=status,
                result_count=result_count,
                latency_ms=latency_ms,
                error_message=error_message,
            )
        )
        self.engines_called += 1
        if status == "ok":
            self.engines_succeeded += 1
        else:
            self.engines_failed += 1

    def record_results(self, total: int, filtered: int) -> None:
        self.total_results = total
        self.filtered_results = filtered


@contextmanager
def track_search(query: str = "", mode: str = "buffered") -> Iterator[SearchMetrics]:
    """Yield a fresh SearchMetrics and log it when the block exits."""
    metrics = SearchMetrics(query=query, mode=mode)
    started = time.monotonic()
    try:
        yield metrics
    finally:
        metrics.total_latency_ms = (time.monotonic() - started) * 1000
        log_search_complete(metrics)


def log_search_start(query: str, engines: List[str], mode: str = "buffered") -> None:
    logger.info(
        "Search started",
        extra={
            "event": "search_start",
            "query_length": len(query),
            "mode": mode,
            "engines_requested": len(engines),
        },
    )


def log_engine_result(engine: str, status: str, result_count: int, latency_ms: float) -> None:
    logger.info(
        f"Engine {engine} completed",
        extra={
            "event": "engine_complete",
            "engine": engine,
            "status": status,
            "result_count": result_count,
            "latency_ms": round(latency_ms, 1),
        },
    )


def log_search_complete(m: SearchMetrics) -> None:
    log_data = {
        "event": "search_complete",
        "query_length": len(m.query),
        "mode": m.mode,
        "results": {
            "total": m.total_results,
            "after_filter": m.filtered_results,
        },
        "engines": {
            "called": m.engines_called,
            "succeeded": m.engines_succeeded,
            "failed": m.engines_failed,
            "success_rate": round(m.success_rate(), 2),
            "details": [
                {
                    "engine": em.engine,
                    "status": em.status,
                    "results": em.result_count,
                    "latency_ms": round(em.latency_ms, 1),
                }
                for em in m.engine_metrics
            ],
        },
        "latency_ms": round(m.total_latency_ms, 1),
        "success": m.has_results(),
    }

    if m.engines_called > 0 and m.engines_failed == m.engines_called:
        logger.error("Search failed - all engines failed", extra=log_data)
    elif m.engines_failed > 0:
        logger.warning("Search completed with engine failures", extra=log_data)
    elif not m.has_results():
        logger.warning("Search completed but no results", extra=log_data)
    else:
        logger.info("Search completed successfully", extra=log_data)
