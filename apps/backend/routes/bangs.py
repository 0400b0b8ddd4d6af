"""
Bang listing and autocomplete endpoints.

/autocomplete routes on the shape of ``q``:
  - empty → popular searches
  - ``!x`` → bang suggestions
  - trailing `` !`` → the first bangs in table order
  - last word ``!x`` → bang suggestions plus the token to replace
  - last word ``@x`` → performer suggestions
  - anything else → combined suggestions for the last word
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from aggregator.bangs import autocomplete_bangs, list_bangs
from aggregator.models import BangInfo, Suggestion
from aggregator.suggestions import (
    autocomplete_combined,
    autocomplete_performers,
    categorized_suggestions,
    popular_searches,
)
from routes.rate_limit import limit_autocomplete

logger = logging.getLogger(__name__)
router = APIRouter(tags=["bangs"])

SUGGESTION_LIMIT = 10
BANG_START_COUNT = 10


def _bangs(items: List[BangInfo]) -> List[Dict[str, Any]]:
    return [item.model_dump() for item in items]


def _suggestions(items: List[Suggestion]) -> List[Dict[str, Any]]:
    return [item.model_dump() for item in items]


@router.get("/bangs")
async def get_bangs():
    bangs = list_bangs()
    return {"bangs": _bangs(bangs), "count": len(bangs)}


@router.get("/bangs/autocomplete")
async def bang_autocomplete(
    q: str = Query("", description="Bang prefix, with or without the leading '!'"),
    _rate_limited: None = Depends(limit_autocomplete),
):
    return {"suggestions": _bangs(autocomplete_bangs(q, SUGGESTION_LIMIT)), "type": "bang"}


@router.get("/autocomplete")
async def autocomplete(
    q: Optional[str] = Query(None),
    _rate_limited: None = Depends(limit_autocomplete),
):
    q = q or ""
    if not q:
        return {"suggestions": popular_searches(SUGGESTION_LIMIT), "type": "popular"}

    if q.startswith("!") and len(q) > 1:
        return {"suggestions": _bangs(autocomplete_bangs(q[1:], SUGGESTION_LIMIT)), "type": "bang"}

    if q.endswith(" !"):
        return {"suggestions": _bangs(list_bangs()[:BANG_START_COUNT]), "type": "bang_start"}

    words = q.split()
    last_word = words[-1] if words else q
    if last_word.startswith("!") and len(last_word) > 1:
        return {
            "suggestions": _bangs(autocomplete_bangs(last_word[1:], SUGGESTION_LIMIT)),
            "type": "bang_replace",
            "replace": last_word,
        }
    if last_word.startswith("@") and len(last_word) > 1:
        return {
            "suggestions": _suggestions(autocomplete_performers(last_word[1:], SUGGESTION_LIMIT)),
            "type": "performer",
            "replace": last_word,
        }

    return {
        "suggestions": _suggestions(autocomplete_combined(last_word.lower(), SUGGESTION_LIMIT)),
        "type": "search",
    }


@router.get("/suggestions/categories")
async def suggestion_categories():
    categories = categorized_suggestions()
    return {"categories": categories, "count": len(categories)}
