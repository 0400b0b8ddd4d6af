"""Engines backed by a vendor JSON API or by JSON embedded in a page."""

from __future__ import annotations

import logging
from abc import abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from exceptions import SourceFetchError
from aggregator.adapters.base import SearchEngine
from aggregator.extraction import extract_json_object, format_duration, format_view_count
from aggregator.models import EngineCapabilities, VideoResult

logger = logging.getLogger(__name__)


class JsonEngine(SearchEngine):
    """Shared item loop for engines whose payload is already structured."""

    def map_items(self, items: List[Dict[str, Any]]) -> List[VideoResult]:
        results: List[VideoResult] = []
        for raw in items:
            if not isinstance(raw, dict):
                continue
            try:
                result = self.map_item(raw)
            except (PydanticValidationError, KeyError, TypeError, ValueError, OverflowError, OSError):
                continue
            if result is not None:
                results.append(result)
        return results

    @abstractmethod
    def map_item(self, raw: Dict[str, Any]) -> Optional[VideoResult]:
        ...


class EpornerEngine(JsonEngine):
    """Eporner public API v2."""

    method = "api"

    def __init__(self, **kwargs):
        super().__init__(
            "eporner",
            "Eporner",
            "https://www.eporner.com",
            1,
            capabilities=EngineCapabilities(
                has_duration=True, has_views=True, has_rating=True, has_upload_date=True
            ),
            features=("pagination", "sorting"),
            **kwargs,
        )

    def search_params(self, query: str, page: int, per_page: int = 50) -> Dict[str, Any]:
        return {
            "query": query,
            "per_page": per_page,
            "page": page,
            "thumbsize": "big",
            "order": "top-rated",
            "format": "json",
        }

    async def search(self, query: str, page: int, client: httpx.AsyncClient) -> List[VideoResult]:
        response = await self.fetch(
            client, f"{self.base_url}/api/v2/video/search/", params=self.search_params(query, page)
        )
        try:
            payload = response.json()
        except ValueError as exc:
            raise SourceFetchError("undecodable API response", engine=self.name) from exc
        if not isinstance(payload, dict):
            raise SourceFetchError("unexpected API response shape", engine=self.name)
        return self.map_items(payload.get("videos") or [])

    def map_item(self, raw: Dict[str, Any]) -> Optional[VideoResult]:
        seconds = int(raw.get("length_sec") or 0)
        views = int(raw.get("views") or 0)
        rate = raw.get("rate")
        thumb = raw.get("default_thumb") or {}
        published = None
        if raw.get("added"):
            try:
                published = datetime.strptime(raw["added"], "%Y-%m-%d %H:%M:%S")
            except ValueError:
                published = None

        return VideoResult(
            title=raw.get("title"),
            url=raw.get("url"),
            thumbnail=thumb.get("src", "") if isinstance(thumb, dict) else "",
            duration=format_duration(seconds) or None,
            duration_seconds=seconds or None,
            views=format_view_count(views) if views else None,
            views_count=views or None,
            # Upstream rates on a 0-5 scale.
            rating=round(float(rate) * 20, 1) if rate not in (None, "") else None,
            published=published,
            tags=(raw.get("keywords") or "").split(","),
            source=self.name,
            source_display=self.display_name,
        )


class XHamsterEngine(JsonEngine):
    """xHamster renders results from a ``window.initials`` object in the page."""

    method = "json_extraction"
    marker = "window.initials="

    def __init__(self, **kwargs):
        super().__init__(
            "xhamster",
            "xHamster",
            "https://xhamster.com",
            2,
            capabilities=EngineCapabilities(has_duration=True, has_views=True, has_upload_date=True),
            **kwargs,
        )

    def search_url(self, query: str, page: int) -> str:
        slug = "+".join(query.split())
        if page <= 1:
            return f"{self.base_url}/search/{slug}"
        return f"{self.base_url}/search/{slug}/{page}"

    async def search(self, query: str, page: int, client: httpx.AsyncClient) -> List[VideoResult]:
        response = await self.fetch(client, self.search_url(query, page))
        initials = extract_json_object(response.text, self.marker)
        if initials is None:
            raise SourceFetchError("initials object not found", engine=self.name)
        search_result = initials.get("searchResult") or {}
        return self.map_items(search_result.get("videoThumbProps") or [])

    def map_item(self, raw: Dict[str, Any]) -> Optional[VideoResult]:
        seconds = int(raw.get("duration") or 0)
        views = int(raw.get("views") or 0)
        created = raw.get("created")
        return VideoResult(
            title=raw.get("title"),
            url=raw.get("pageURL"),
            thumbnail=raw.get("thumbURL") or "",
            preview_url=raw.get("trailerURL") or None,
            duration=format_duration(seconds) or None,
            duration_seconds=seconds or None,
            views=format_view_count(views) if views else None,
            views_count=views or None,
            published=datetime.fromtimestamp(created, tz=timezone.utc) if created else None,
            source=self.name,
            source_display=self.display_name,
        )
