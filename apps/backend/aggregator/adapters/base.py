"""Engine contract shared by every upstream video site.

An engine knows how to turn ``(query, page)`` into one upstream request and
how to map the response onto :class:`VideoResult` items. The HTTP client is
always supplied by the caller, so transport selection (direct or
anonymized) stays outside the engine.
"""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional
from urllib.parse import quote_plus

import httpx

from exceptions import SourceFetchError
from aggregator.models import EngineCapabilities, EngineDescriptor, ExtractionMethod, VideoResult
from observability.metrics import engine_circuit_open

logger = logging.getLogger(__name__)

RETRY_INITIAL_DELAY = 0.1
RETRY_MAX_DELAY = 2.0
RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})


class CircuitBreaker:
    """Consecutive-failure circuit breaker for one engine.

    closed -> open after ``failure_threshold`` consecutive failures.
    open -> half_open once ``reset_timeout`` seconds have passed; half_open
    admits a single trial call at a time.
    half_open -> closed after ``success_threshold`` successes, or back to
    open on the first failure.
    """

    def __init__(
        self,
        name: str,
        *,
        failure_threshold: int = 5,
        success_threshold: int = 2,
        reset_timeout: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.success_threshold = success_threshold
        self.reset_timeout = reset_timeout
        self._clock = clock
        self.state = "closed"
        self._failures = 0
        self._successes = 0
        self._opened_at = 0.0
        self._trial_in_flight = False

    def allow(self) -> bool:
        if self.state == "open":
            if self._clock() - self._opened_at < self.reset_timeout:
                return False
            self.state = "half_open"
            self._successes = 0
            self._trial_in_flight = False
        if self.state == "half_open":
            # One trial call at a time until the breaker settles.
            if self._trial_in_flight:
                return False
            self._trial_in_flight = True
        return True

    def record_success(self) -> None:
        if self.state == "half_open":
            self._trial_in_flight = False
            self._successes += 1
            if self._successes >= self.success_threshold:
                self._close()
        else:
            self._failures = 0

    def record_failure(self) -> None:
        self._failures += 1
        if self.state == "half_open" or self._failures >= self.failure_threshold:
            self._open()

    def _open(self) -> None:
        self._trial_in_flight = False
        if self.state != "open":
            logger.warning(f"[Engine:{self.name}] circuit opened after {self._failures} failures")
        self.state = "open"
        self._opened_at = self._clock()
        engine_circuit_open.labels(engine=self.name).set(1)

    def _close(self) -> None:
        logger.info(f"[Engine:{self.name}] circuit closed")
        self.state = "closed"
        self._failures = 0
        self._successes = 0
        engine_circuit_open.labels(engine=self.name).set(0)


class SearchEngine(ABC):
    """Base class for all engines.

    Subclasses implement :meth:`search`; everything else (identity,
    capability declaration, URL templating, fetch with retry and circuit
    breaking) lives here.
    """

    method: ExtractionMethod = "html"

    def __init__(
        self,
        name: str,
        display_name: str,
        base_url: str,
        tier: int,
        *,
        capabilities: Optional[EngineCapabilities] = None,
        features: Iterable[str] = ("pagination",),
        max_retries: int = 2,
    ):
        self.name = name
        self.display_name = display_name
        self.base_url = base_url.rstrip("/")
        self.tier = tier
        self.capabilities = (capabilities or EngineCapabilities()).model_copy(update={"api_type": self.method})
        self.features: FrozenSet[str] = frozenset(features)
        self.max_retries = max_retries
        self.breaker = CircuitBreaker(name)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name} tier={self.tier}>"

    def supports_feature(self, feature: str) -> bool:
        return feature in self.features

    def descriptor(self, *, enabled: bool = True, short_code: Optional[str] = None) -> EngineDescriptor:
        return EngineDescriptor(
            name=self.name,
            display_name=self.display_name,
            base_url=self.base_url,
            tier=self.tier,
            method=self.method,
            capabilities=self.capabilities,
            features=sorted(self.features),
            enabled=enabled,
            short_code=short_code,
        )

    def build_search_url(
        self,
        template: str,
        query: str,
        page: int,
        *,
        encode: Callable[[str], str] = quote_plus,
    ) -> str:
        """Expand ``{query}`` and ``{page}`` in a path template relative to base_url."""
        path = template.replace("{query}", encode(query)).replace("{page}", str(page))
        return f"{self.base_url}{path}"

    async def fetch(
        self,
        client: httpx.AsyncClient,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        """GET ``url`` with bounded retries on 429/5xx and transport errors.

        Raises SourceFetchError once retries are exhausted, on any other
        non-2xx status, or immediately while the circuit is open. Task
        cancellation counts against the circuit and is re-raised.
        """
        if not self.breaker.allow():
            raise SourceFetchError("circuit open", engine=self.name)

        last_error = "no response"
        try:
            for attempt in range(self.max_retries + 1):
                try:
                    response = await client.get(url, params=params, headers=headers)
                except httpx.TransportError as exc:
                    last_error = f"{type(exc).__name__}: {exc}"
                else:
                    if response.is_success:
                        self.breaker.record_success()
                        return response
                    last_error = f"HTTP {response.status_code}"
                    if response.status_code not in RETRYABLE_STATUS:
                        break

                if attempt < self.max_retries:
                    delay = min(RETRY_INITIAL_DELAY * (2 ** attempt), RETRY_MAX_DELAY)
                    logger.debug(f"[Engine:{self.name}] retry {attempt + 1} after {last_error}")
                    await asyncio.sleep(delay)
        except BaseException:
            # Timeouts and cancellation arrive here as CancelledError.
            self.breaker.record_failure()
            raise

        self.breaker.record_failure()
        raise SourceFetchError(last_error, engine=self.name, detail={"url": url})

    @abstractmethod
    async def search(self, query: str, page: int, client: httpx.AsyncClient) -> List[VideoResult]:
        """Return this engine's results for ``query`` in upstream order."""
