"""Tests for the fan-out coordinator, buffered and streamed."""

import asyncio
import dataclasses
import time
from unittest.mock import MagicMock

import pytest

from exceptions import NoEnginesAvailableError, ResourceNotFoundError, SourceFetchError, ValidationError
from aggregator.adapters.base import SearchEngine
from aggregator.bangs import parse_bangs
from aggregator.config import ConfigStore, SearchSettings
from aggregator.coordinator import DEADLINE_MESSAGE, SearchCoordinator
from aggregator.models import EngineBatch, StreamSummary, VideoResult


class DummyEngine(SearchEngine):
    def __init__(self, name, results=None, delay: float = 0.0, error: Exception = None):
        super().__init__(name, name.title(), f"https://{name}.test", 1)
        self.results = results if results is not None else [clip(name, 1), clip(name, 2)]
        self.delay = delay
        self.error = error
        self.calls = []
        self.cancelled = False

    async def search(self, query, page, client):
        self.calls.append((query, page))
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.error:
            raise self.error
        return list(self.results)


def clip(source, index, url=None, **fields):
    return VideoResult(
        title=f"{source} clip {index}",
        url=url or f"https://{source}.test/v/{index}",
        source=source,
        **fields,
    )


def make_coordinator(*engines, **settings):
    settings.setdefault("engine_timeout_seconds", 0.2)
    settings.setdefault("search_deadline_seconds", 2.0)
    store = ConfigStore(SearchSettings(**settings), env_file=None)
    transport = MagicMock()
    transport.get_client.return_value = MagicMock()
    return SearchCoordinator({engine.name: engine for engine in engines}, store, transport)


def with_deadline(plan, seconds):
    # Bypass the deadline >= engine timeout check to isolate the overall deadline.
    settings = SearchSettings.model_construct(
        **{**plan.settings.model_dump(), "search_deadline_seconds": seconds, "engine_timeout_seconds": 10.0}
    )
    return dataclasses.replace(plan, settings=settings)


class TestPlan:
    def test_bang_targets(self):
        coordinator = make_coordinator(DummyEngine("pornhub"), DummyEngine("redtube"), DummyEngine("xvideos"))
        plan = coordinator.plan(parse_bangs("!rt !ph cats"))
        assert plan.engine_names == ["redtube", "pornhub"]
        assert plan.query == "cats"

    def test_bangs_take_precedence_over_override(self):
        coordinator = make_coordinator(DummyEngine("pornhub"), DummyEngine("redtube"))
        plan = coordinator.plan(parse_bangs("!ph cats"), engines=["redtube"])
        assert plan.engine_names == ["pornhub"]

    def test_override_without_bang(self):
        coordinator = make_coordinator(DummyEngine("pornhub"), DummyEngine("redtube"))
        plan = coordinator.plan(parse_bangs("cats"), engines=["Redtube "])
        assert plan.engine_names == ["redtube"]

    def test_disabled_engines_are_skipped(self):
        coordinator = make_coordinator(
            DummyEngine("pornhub"), DummyEngine("redtube"), disabled_engines=["redtube"]
        )
        assert coordinator.plan(parse_bangs("cats")).engine_names == ["pornhub"]
        with pytest.raises(NoEnginesAvailableError):
            coordinator.plan(parse_bangs("!rt cats"))

    def test_unknown_override_raises(self):
        coordinator = make_coordinator(DummyEngine("pornhub"))
        with pytest.raises(NoEnginesAvailableError):
            coordinator.plan(parse_bangs("cats"), engines=["nope"])

    def test_empty_query_after_bangs(self):
        coordinator = make_coordinator(DummyEngine("pornhub"))
        with pytest.raises(ValidationError):
            coordinator.plan(parse_bangs("!ph"))

    @pytest.mark.parametrize("page", [0, -1, 11])
    def test_page_bounds(self, page):
        coordinator = make_coordinator(DummyEngine("pornhub"), max_pages=10)
        with pytest.raises(ValidationError):
            coordinator.plan(parse_bangs("cats"), page)

    def test_phrase_only_query(self):
        coordinator = make_coordinator(DummyEngine("pornhub"))
        assert coordinator.plan(parse_bangs('"big cat"')).query == "big cat"


class TestRegistryViews:
    def test_list_and_get(self):
        coordinator = make_coordinator(
            DummyEngine("pornhub"), DummyEngine("redtube"), disabled_engines=["redtube"]
        )
        engines = coordinator.list_engines()
        assert [e.name for e in engines] == ["pornhub", "redtube"]
        assert [e.enabled for e in engines] == [True, False]
        assert coordinator.get_engine("PornHub").short_code == "!ph"

    def test_unknown_engine(self):
        coordinator = make_coordinator(DummyEngine("pornhub"))
        with pytest.raises(ResourceNotFoundError):
            coordinator.get_engine("nope")

    def test_validate_and_apply_settings(self):
        engine = DummyEngine("pornhub")
        coordinator = make_coordinator(engine)
        with pytest.raises(NoEnginesAvailableError):
            coordinator.validate_settings(SearchSettings(disabled_engines=["pornhub"]))
        coordinator.apply_settings(SearchSettings(engine_max_retries=0))
        assert engine.max_retries == 0


class TestBufferedSearch:
    @pytest.mark.asyncio
    async def test_one_slow_engine_does_not_block_others(self):
        slow = DummyEngine("redtube", delay=5.0)
        coordinator = make_coordinator(DummyEngine("pornhub"), slow, DummyEngine("xvideos"))
        plan = coordinator.plan(parse_bangs("cats"))

        started = time.monotonic()
        response = await coordinator.search(plan)
        elapsed = time.monotonic() - started

        assert elapsed < plan.settings.search_deadline_seconds
        assert response.engines_used == ["pornhub", "xvideos"]
        assert response.engines_failed == ["redtube"]
        assert [r.source for r in response.results] == ["pornhub", "pornhub", "xvideos", "xvideos"]
        statuses = {s.engine: s for s in response.engine_statuses}
        assert statuses["redtube"].status == "timeout"
        assert statuses["pornhub"].result_count == 2

    @pytest.mark.asyncio
    async def test_failing_engine_is_reported_not_raised(self):
        broken = DummyEngine("redtube", error=SourceFetchError("HTTP 503", engine="redtube"))
        coordinator = make_coordinator(DummyEngine("pornhub"), broken)
        response = await coordinator.search(coordinator.plan(parse_bangs("cats")))

        assert response.engines_failed == ["redtube"]
        assert len(response.results) == 2
        assert response.engine_statuses[1].status == "error"

    @pytest.mark.asyncio
    async def test_all_engines_failing_still_returns(self):
        coordinator = make_coordinator(DummyEngine("pornhub", error=RuntimeError("boom")))
        response = await coordinator.search(coordinator.plan(parse_bangs("cats")))

        assert response.results == []
        assert response.engines_failed == ["pornhub"]
        assert response.pagination.pages == 1

    @pytest.mark.asyncio
    async def test_overall_deadline_cancels_pending(self):
        slow = DummyEngine("redtube", delay=5.0)
        coordinator = make_coordinator(DummyEngine("pornhub"), slow)
        plan = with_deadline(coordinator.plan(parse_bangs("cats")), 0.1)

        response = await coordinator.search(plan)

        assert slow.cancelled is True
        status = response.engine_statuses[1]
        assert status.status == "timeout"
        assert status.message == DEADLINE_MESSAGE
        assert response.engines_used == ["pornhub"]

    @pytest.mark.asyncio
    async def test_envelope_metadata(self):
        coordinator = make_coordinator(
            DummyEngine("pornhub", results=[clip("pornhub", i) for i in range(3)]),
            DummyEngine("redtube"),
            results_per_page=2,
        )
        response = await coordinator.search(coordinator.plan(parse_bangs("!ph !bogus milf"), 2))

        assert response.query == "!ph !bogus milf"
        assert response.search_query == "!bogus milf"
        assert response.has_bang is True
        assert response.bang_engines == ["pornhub"]
        assert response.invalid_bang == "!bogus"
        assert response.pagination.model_dump() == {"page": 2, "limit": 2, "total": 3, "pages": 2}
        assert len(response.results) == 3
        assert response.related_searches
        assert coordinator.engines["pornhub"].calls == [("!bogus milf", 2)]

    @pytest.mark.asyncio
    async def test_dedupe_across_engines(self):
        coordinator = make_coordinator(
            DummyEngine("pornhub", results=[clip("pornhub", 1, url="https://www.shared.test/v/1?utm_source=ph")]),
            DummyEngine("redtube", results=[clip("redtube", 1, url="https://shared.test/v/1/")]),
        )
        plan = coordinator.plan(parse_bangs("cats"))

        assert len((await coordinator.search(plan)).results) == 2
        deduped = await coordinator.search(plan, dedupe=True)
        assert [r.source for r in deduped.results] == ["pornhub"]

    @pytest.mark.asyncio
    async def test_filters_are_applied(self):
        coordinator = make_coordinator(
            DummyEngine(
                "pornhub",
                results=[
                    clip("pornhub", 1, duration_seconds=30),
                    clip("pornhub", 2, duration_seconds=600),
                    clip("pornhub", 3, duration_seconds=600, tags=["dogs"]),
                ],
            ),
            min_duration_seconds=60,
        )
        response = await coordinator.search(coordinator.plan(parse_bangs("cats -dogs")))
        assert [r.title for r in response.results] == ["pornhub clip 2"]


class TestStreamingSearch:
    @pytest.mark.asyncio
    async def test_yields_in_completion_order_then_summary(self):
        coordinator = make_coordinator(
            DummyEngine("pornhub", delay=0.1),
            DummyEngine("redtube", delay=0.01),
            DummyEngine("xvideos", error=SourceFetchError("HTTP 500", engine="xvideos")),
        )
        plan = coordinator.plan(parse_bangs("cats"))

        events = [event async for event in coordinator.search_stream(plan)]

        batches = events[:-1]
        assert all(isinstance(event, EngineBatch) for event in batches)
        assert [b.engine for b in batches] == ["xvideos", "redtube", "pornhub"]
        assert [b.remaining for b in batches] == [2, 1, 0]
        assert batches[0].status == "error"
        assert len(batches[1].results) == 2

        summary = events[-1]
        assert isinstance(summary, StreamSummary)
        assert summary.engines_used == ["redtube", "pornhub"]
        assert summary.engines_failed == ["xvideos"]
        assert summary.total == 4

    @pytest.mark.asyncio
    async def test_deadline_expired_engines_close_the_stream(self):
        slow = DummyEngine("redtube", delay=5.0)
        coordinator = make_coordinator(DummyEngine("pornhub"), slow)
        plan = with_deadline(coordinator.plan(parse_bangs("cats")), 0.1)

        events = [event async for event in coordinator.search_stream(plan)]

        assert [type(e).__name__ for e in events] == ["EngineBatch", "EngineBatch", "StreamSummary"]
        expired = events[1]
        assert expired.engine == "redtube"
        assert expired.status == "timeout"
        assert expired.message == DEADLINE_MESSAGE
        assert expired.remaining == 0
        assert events[2].engines_failed == ["redtube"]
        await asyncio.sleep(0.05)
        assert slow.cancelled is True

    @pytest.mark.asyncio
    async def test_closing_the_stream_cancels_in_flight_engines(self):
        slow = DummyEngine("redtube", delay=5.0)
        coordinator = make_coordinator(DummyEngine("pornhub"), slow, engine_timeout_seconds=10.0,
                                       search_deadline_seconds=10.0)
        stream = coordinator.search_stream(coordinator.plan(parse_bangs("cats")))

        first = await stream.__anext__()
        assert first.engine == "pornhub"
        await stream.aclose()
        await asyncio.sleep(0.05)

        assert slow.cancelled is True

    @pytest.mark.asyncio
    async def test_stream_dedupe(self):
        coordinator = make_coordinator(
            DummyEngine("pornhub", results=[clip("pornhub", 1, url="https://shared.test/v/1")]),
            DummyEngine("redtube", results=[clip("redtube", 1, url="https://shared.test/v/1")], delay=0.05),
        )
        events = [e async for e in coordinator.search_stream(coordinator.plan(parse_bangs("cats")), dedupe=True)]

        assert len(events[0].results) == 1
        assert events[1].results == []
        assert events[-1].total == 1
