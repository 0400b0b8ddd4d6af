"""
Search endpoint.

One route, three renderings of the same fan-out:
  - application/json → buffered SearchResponse envelope
  - text/event-stream → one ``result`` frame per engine, then ``done``
  - text/plain → flattened listing

The ``format`` query parameter wins over the Accept header.
"""

import json
import logging
from typing import AsyncGenerator, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse, StreamingResponse

from dependencies import get_coordinator
from exceptions import NoEnginesAvailableError, ValidationError
from aggregator.bangs import parse_bangs
from aggregator.coordinator import SearchCoordinator, SearchPlan
from aggregator.models import EngineBatch, SearchResponse
from routes.rate_limit import limit_search

logger = logging.getLogger(__name__)
router = APIRouter(tags=["search"])

FORMATS = {"json", "sse", "text"}
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def negotiate_format(format_param: Optional[str], accept: Optional[str]) -> str:
    if format_param:
        fmt = format_param.strip().lower()
        if fmt not in FORMATS:
            raise ValidationError(
                f"Unsupported format '{format_param}'",
                detail={"allowed": sorted(FORMATS)},
            )
        return fmt
    accept = (accept or "").lower()
    if "text/event-stream" in accept:
        return "sse"
    if "text/plain" in accept and "application/json" not in accept:
        return "text"
    return "json"


def _csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [part.strip().lower() for part in value.split(",") if part.strip()]


def parse_page(raw: Optional[str]) -> int:
    if raw is None or not raw.strip():
        return 1
    try:
        return int(raw.strip())
    except ValueError:
        raise ValidationError("Page must be an integer", detail={"page": raw})


def sse_frame(event: str, payload: dict) -> str:
    return f"event: {event}\ndata: {json.dumps(payload)}\n\n"


def render_text(response: SearchResponse) -> str:
    lines = [
        f"query: {response.query}",
        f"results: {len(response.results)}",
        f"engines: {', '.join(response.engines_used)}",
    ]
    lines.append("---")
    for index, result in enumerate(response.results, start=1):
        lines.append(f"{index}. {result.title}")
        lines.append(f"   url: {result.url}")
        lines.append(f"   source: {result.source_display}")
        if result.duration:
            lines.append(f"   duration: {result.duration}")
        if result.views:
            lines.append(f"   views: {result.views}")
    if response.engines_failed:
        lines.append("---")
        lines.append(f"failed: {', '.join(response.engines_failed)}")
    return "\n".join(lines) + "\n"


async def stream_events(
    coordinator: SearchCoordinator, plan: SearchPlan, dedupe: bool
) -> AsyncGenerator[str, None]:
    async for event in coordinator.search_stream(plan, dedupe=dedupe):
        if isinstance(event, EngineBatch):
            yield sse_frame("result", event.model_dump(mode="json"))
        else:
            yield sse_frame("done", event.model_dump(mode="json"))


@router.get("/search")
async def search(
    request: Request,
    q: Optional[str] = Query(None, description="Query, may contain !bang, @performer, -exclude and \"phrases\""),
    page: Optional[str] = Query(None),
    engines: Optional[str] = Query(None, description="Comma separated engine names"),
    dedupe: bool = Query(False),
    format: Optional[str] = Query(None),
    coordinator: SearchCoordinator = Depends(get_coordinator),
    _rate_limited: None = Depends(limit_search),
):
    if not q or not q.strip():
        raise HTTPException(status_code=400, detail="Query parameter 'q' is required")

    fmt = negotiate_format(format, request.headers.get("accept"))
    page_number = parse_page(page)
    parsed = parse_bangs(q.strip())
    try:
        plan = coordinator.plan(parsed, page_number, engines=_csv(engines))
    except NoEnginesAvailableError as e:
        raise ValidationError(e.message, detail=e.detail) from e

    logger.info(f"[Search] fmt={fmt} engines={len(plan.engines)} page={page_number} bang={parsed.has_bang}")

    if fmt == "sse":
        return StreamingResponse(
            stream_events(coordinator, plan, dedupe),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )

    response = await coordinator.search(plan, dedupe=dedupe)
    if fmt == "text":
        return PlainTextResponse(render_text(response))
    return JSONResponse(content=response.model_dump(mode="json"))
