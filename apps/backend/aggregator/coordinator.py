"""Fan-out search coordinator.

One task per selected engine, each bounded by the per-engine timeout and
all of them bounded by the overall search deadline. Engines that fail or
time out contribute nothing and are reported on the envelope; they never
abort their siblings.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from dataclasses import dataclass
from typing import AsyncIterator, Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union

from exceptions import NoEnginesAvailableError, ResourceNotFoundError, ValidationError
from aggregator.adapters.base import SearchEngine
from aggregator.bangs import short_code
from aggregator.config import ConfigStore, SearchSettings
from aggregator.executors import run_engine_with_status
from aggregator.filters import apply_filters
from aggregator.metrics import SearchMetrics, log_search_start, track_search
from aggregator.models import (
    EngineBatch,
    EngineDescriptor,
    EngineStatusSnapshot,
    Pagination,
    ParsedQuery,
    SearchResponse,
    StreamSummary,
    VideoResult,
)
from aggregator.suggestions import related_searches
from aggregator.transport import TransportProvider
from aggregator.utils.url import dedupe_key
from observability.metrics import search_requests_total

logger = logging.getLogger(__name__)

DEADLINE_MESSAGE = "Search deadline exceeded"
RELATED_SEARCH_LIMIT = 8

StreamEvent = Union[EngineBatch, StreamSummary]


@dataclass(frozen=True)
class SearchPlan:
    """Everything one search needs, resolved before any engine is called."""

    parsed: ParsedQuery
    page: int
    settings: SearchSettings
    engines: Tuple[SearchEngine, ...]
    query: str

    @property
    def engine_names(self) -> List[str]:
        return [engine.name for engine in self.engines]


class _BatchSink:
    """Per-search filter and optional cross-engine URL dedupe."""

    def __init__(self, plan: SearchPlan, dedupe: bool):
        self.plan = plan
        self.dedupe = dedupe
        self.seen: Set[str] = set()
        self.raw_total = 0
        self.kept_total = 0

    def accept(self, results: List[VideoResult]) -> List[VideoResult]:
        settings = self.plan.settings
        self.raw_total += len(results)
        kept = apply_filters(
            results,
            self.plan.parsed,
            min_duration_seconds=settings.min_duration_seconds,
            filter_premium=settings.filter_premium,
            proxy_base=settings.thumbnail_proxy_url or None,
        )
        if self.dedupe:
            unique = []
            for result in kept:
                key = dedupe_key(result.url)
                if key and key not in self.seen:
                    self.seen.add(key)
                    unique.append(result)
            kept = unique
        self.kept_total += len(kept)
        return kept


def _deadline_status(engine: str, deadline_seconds: float) -> EngineStatusSnapshot:
    return EngineStatusSnapshot(
        engine=engine,
        status="timeout",
        result_count=0,
        latency_ms=int(deadline_seconds * 1000),
        message=DEADLINE_MESSAGE,
    )


class SearchCoordinator:
    def __init__(
        self,
        engines: Dict[str, SearchEngine],
        config_store: ConfigStore,
        transport: TransportProvider,
    ):
        self.engines = engines
        self.config_store = config_store
        self.transport = transport

    @property
    def settings(self) -> SearchSettings:
        return self.config_store.settings

    # -- registry views ---------------------------------------------------

    def enabled_engine_names(self, settings: Optional[SearchSettings] = None) -> List[str]:
        return (settings or self.settings).enabled_engine_names(list(self.engines))

    def validate_settings(self, settings: SearchSettings) -> None:
        """Reject a config snapshot that would leave nothing to search."""
        if not self.enabled_engine_names(settings):
            raise NoEnginesAvailableError(
                "Configuration enables no engines",
                requested=settings.default_engines or None,
            )

    def apply_settings(self, settings: SearchSettings) -> None:
        for engine in self.engines.values():
            engine.max_retries = settings.engine_max_retries

    def describe(self, engine: SearchEngine, enabled: Optional[Iterable[str]] = None) -> EngineDescriptor:
        enabled_set = set(self.enabled_engine_names() if enabled is None else enabled)
        return engine.descriptor(enabled=engine.name in enabled_set, short_code=f"!{short_code(engine.name)}")

    def list_engines(self) -> List[EngineDescriptor]:
        enabled = self.enabled_engine_names()
        return [self.describe(engine, enabled) for engine in self.engines.values()]

    def get_engine(self, name: str) -> EngineDescriptor:
        engine = self.engines.get((name or "").strip().lower())
        if engine is None:
            raise ResourceNotFoundError("Engine not found", detail={"engine": name})
        return self.describe(engine)

    # -- planning ---------------------------------------------------------

    def select_engines(self, targets: Sequence[str], settings: SearchSettings) -> List[SearchEngine]:
        """Targets intersected with enabled engines, or every enabled engine.

        An explicit target list that resolves to nothing raises rather than
        silently widening to all engines.
        """
        enabled = self.enabled_engine_names(settings)
        if targets:
            allowed = set(enabled)
            chosen = [name for name in dict.fromkeys(targets) if name in allowed]
        else:
            chosen = enabled
        if not chosen:
            raise NoEnginesAvailableError(requested=list(targets) or None)
        return [self.engines[name] for name in chosen]

    def plan(
        self,
        parsed: ParsedQuery,
        page: int = 1,
        *,
        engines: Optional[Sequence[str]] = None,
    ) -> SearchPlan:
        """Validate a request and freeze the config snapshot it will run with.

        Bang targets take precedence over an explicit ``engines`` override.
        """
        settings = self.settings
        query = parsed.upstream_query()
        if not query:
            raise ValidationError("Search query is empty", detail={"query": parsed.original})
        if page < 1:
            raise ValidationError("Page must be 1 or greater", detail={"page": page})
        if page > settings.max_pages:
            raise ValidationError(
                f"Page must not exceed {settings.max_pages}",
                detail={"page": page, "max_pages": settings.max_pages},
            )

        targets = parsed.engines or [name.strip().lower() for name in (engines or []) if name.strip()]
        selected = self.select_engines(targets, settings)
        return SearchPlan(
            parsed=parsed,
            page=page,
            settings=settings,
            engines=tuple(selected),
            query=query,
        )

    def _dispatch(self, plan: SearchPlan, metrics: SearchMetrics) -> Dict["asyncio.Task", str]:
        client = self.transport.get_client()
        return {
            asyncio.create_task(
                run_engine_with_status(
                    engine,
                    plan.query,
                    plan.page,
                    client,
                    timeout_seconds=plan.settings.engine_timeout_seconds,
                    metrics=metrics,
                ),
                name=f"search:{engine.name}",
            ): engine.name
            for engine in plan.engines
        }

    # -- buffered ---------------------------------------------------------

    async def search(self, plan: SearchPlan, *, dedupe: bool = False) -> SearchResponse:
        """Run every engine, wait for all of them (or the deadline), merge in registry order."""
        started = time.monotonic()
        search_requests_total.labels(mode="buffered").inc()
        log_search_start(plan.query, plan.engine_names, mode="buffered")
        deadline = plan.settings.search_deadline_seconds

        with track_search(plan.parsed.original, mode="buffered") as metrics:
            tasks = self._dispatch(plan, metrics)
            outcomes: Dict[str, Tuple[List[VideoResult], EngineStatusSnapshot]] = {}
            pending: Set[asyncio.Task] = set()
            try:
                if tasks:
                    done, pending = await asyncio.wait(tasks.keys(), timeout=deadline)
                    for task in done:
                        outcomes[tasks[task]] = task.result()
            finally:
                for task in pending:
                    task.cancel()
                if pending:
                    await asyncio.gather(*pending, return_exceptions=True)
            if pending:
                logger.warning(
                    f"[Coordinator] deadline of {deadline}s hit with {len(pending)} engines pending: "
                    f"{sorted(tasks[task] for task in pending)}"
                )

            sink = _BatchSink(plan, dedupe)
            merged: List[VideoResult] = []
            statuses: List[EngineStatusSnapshot] = []
            for name in plan.engine_names:
                results, status = outcomes.get(name) or ([], _deadline_status(name, deadline))
                merged.extend(sink.accept(results))
                statuses.append(status)
            metrics.record_results(sink.raw_total, sink.kept_total)

        limit = plan.settings.results_per_page
        total = len(merged)
        return SearchResponse(
            query=plan.parsed.original,
            search_query=plan.query,
            results=merged,
            engines_used=[s.engine for s in statuses if s.status == "ok"],
            engines_failed=[s.engine for s in statuses if s.status != "ok"],
            engine_statuses=statuses,
            search_time_ms=int((time.monotonic() - started) * 1000),
            has_bang=plan.parsed.has_bang,
            bang_engines=list(plan.parsed.engines),
            invalid_bang=plan.parsed.invalid_bang,
            related_searches=related_searches(plan.parsed.query or plan.query, RELATED_SEARCH_LIMIT),
            pagination=Pagination(
                page=plan.page,
                limit=limit,
                total=total,
                pages=max(1, math.ceil(total / limit)),
            ),
        )

    # -- streaming --------------------------------------------------------

    async def search_stream(self, plan: SearchPlan, *, dedupe: bool = False) -> AsyncIterator[StreamEvent]:
        """Yield one EngineBatch per engine in completion order, then a StreamSummary.

        Engines still running at the deadline are cancelled and reported as
        ``timeout`` batches just before the summary. Closing the generator
        early cancels whatever is still in flight.
        """
        started = time.monotonic()
        search_requests_total.labels(mode="stream").inc()
        log_search_start(plan.query, plan.engine_names, mode="stream")
        loop = asyncio.get_running_loop()
        deadline_seconds = plan.settings.search_deadline_seconds
        deadline = loop.time() + deadline_seconds
        order = {name: index for index, name in enumerate(plan.engine_names)}

        used: List[str] = []
        failed: List[str] = []

        with track_search(plan.parsed.original, mode="stream") as metrics:
            tasks = self._dispatch(plan, metrics)
            pending: Set[asyncio.Task] = set(tasks)
            remaining = len(tasks)
            sink = _BatchSink(plan, dedupe)
            try:
                while pending:
                    timeout = deadline - loop.time()
                    if timeout <= 0:
                        break
                    done, pending = await asyncio.wait(
                        pending, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
                    )
                    if not done:
                        break
                    # Ties within one wakeup follow registry order.
                    for task in sorted(done, key=lambda t: order[tasks[t]]):
                        results, status = task.result()
                        remaining -= 1
                        (used if status.status == "ok" else failed).append(status.engine)
                        yield EngineBatch(
                            engine=status.engine,
                            status=status.status,
                            results=sink.accept(results),
                            remaining=remaining,
                            message=status.message,
                        )

                expired = sorted((tasks[task] for task in pending), key=order.__getitem__)
                for task in pending:
                    task.cancel()
                pending = set()
                if expired:
                    logger.warning(f"[Coordinator] stream deadline hit, cancelled: {expired}")
                for name in expired:
                    remaining -= 1
                    failed.append(name)
                    yield EngineBatch(
                        engine=name,
                        status="timeout",
                        remaining=remaining,
                        message=DEADLINE_MESSAGE,
                    )
                metrics.record_results(sink.raw_total, sink.kept_total)

                yield StreamSummary(
                    query=plan.parsed.original,
                    search_query=plan.query,
                    engines_used=used,
                    engines_failed=failed,
                    total=sink.kept_total,
                    search_time_ms=int((time.monotonic() - started) * 1000),
                    has_bang=plan.parsed.has_bang,
                    bang_engines=list(plan.parsed.engines),
                    invalid_bang=plan.parsed.invalid_bang,
                )
            finally:
                for task in pending:
                    task.cancel()
