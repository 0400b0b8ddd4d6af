"""Engine executor with status instrumentation."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import List, Optional, Tuple, TYPE_CHECKING

import httpx

from exceptions import SourceFetchError
from aggregator.metrics import SearchMetrics, log_engine_result
from aggregator.models import EngineStatusSnapshot, VideoResult
from observability.metrics import (
    search_engine_duration_seconds,
    search_engine_errors_total,
    search_results_count,
)

if TYPE_CHECKING:
    from aggregator.adapters.base import SearchEngine

logger = logging.getLogger(__name__)


def _finish(
    engine: str,
    status: str,
    started: float,
    results: List[VideoResult],
    message: Optional[str],
    metrics: Optional[SearchMetrics],
) -> EngineStatusSnapshot:
    elapsed = time.monotonic() - started
    elapsed_ms = int(elapsed * 1000)
    search_engine_duration_seconds.labels(engine=engine).observe(elapsed)
    if status == "ok":
        search_results_count.labels(engine=engine).observe(len(results))
    else:
        search_engine_errors_total.labels(engine=engine, error_type=status).inc()
    log_engine_result(engine, status, len(results), elapsed_ms)
    if metrics is not None:
        metrics.record_engine(engine, status, len(results), elapsed_ms, message)
    return EngineStatusSnapshot(
        engine=engine,
        status=status,
        result_count=len(results),
        latency_ms=elapsed_ms,
        message=message,
    )


async def run_engine_with_status(
    engine: "SearchEngine",
    query: str,
    page: int,
    client: httpx.AsyncClient,
    *,
    timeout_seconds: float = 15.0,
    metrics: Optional[SearchMetrics] = None,
) -> Tuple[List[VideoResult], EngineStatusSnapshot]:
    """Run one engine under its own timeout and never raise for engine failure.

    Cancellation from the caller (overall deadline, disconnected client) is
    recorded and then re-raised.
    """
    started = time.monotonic()
    try:
        results = await asyncio.wait_for(engine.search(query, page, client), timeout=timeout_seconds)
        return results, _finish(engine.name, "ok", started, results, None, metrics)
    except asyncio.TimeoutError:
        return [], _finish(engine.name, "timeout", started, [], "Search timed out", metrics)
    except asyncio.CancelledError:
        _finish(engine.name, "cancelled", started, [], "Search cancelled", metrics)
        raise
    except SourceFetchError as e:
        logger.warning(f"[Engine:{engine.name}] fetch failed: {e.message}")
        return [], _finish(engine.name, "error", started, [], f"Search failed: {e.message[:100]}", metrics)
    except Exception as e:
        error_msg = str(e)
        logger.error(f"[Engine:{engine.name}] Search error: {type(e).__name__}: {error_msg}", exc_info=True)
        return [], _finish(engine.name, "error", started, [], f"Search failed: {error_msg[:100]}", metrics)
