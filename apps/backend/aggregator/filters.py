"""Post-fetch result filters shared by buffered and streamed searches.

Each filter keeps or drops a single result; batch order is never changed.
"""

import logging
from typing import List, Optional

from aggregator.models import ParsedQuery, VideoResult
from aggregator.transport import proxied_media_url

logger = logging.getLogger(__name__)


def passes_min_duration(result: VideoResult, min_seconds: int) -> bool:
    """Unknown durations always pass; known ones must reach ``min_seconds``."""
    if min_seconds <= 0 or not result.duration_seconds:
        return True
    return result.duration_seconds >= min_seconds


def matches_operators(result: VideoResult, parsed: ParsedQuery) -> bool:
    """Apply exact-phrase, exclusion and performer operators from the query.

    Rules:
    - every exact phrase must appear in the title
    - no exclusion may appear in the title or tags
    - when performers are given, one must appear in the performer field or title
    """
    if not parsed.has_operators():
        return True

    title = result.title.lower()

    for phrase in parsed.exact_phrases:
        if phrase.lower() not in title:
            return False

    if parsed.exclusions:
        haystack = " ".join([title] + result.tags)
        for excluded in parsed.exclusions:
            if excluded in haystack:
                logger.debug(f"[Filter] Dropping '{result.title}' - matches excluded '{excluded}'")
                return False

    if parsed.performers:
        performer = (result.performer or "").lower()
        if not any(name in performer or name in title for name in parsed.performers):
            return False

    return True


def apply_filters(
    results: List[VideoResult],
    parsed: ParsedQuery,
    *,
    min_duration_seconds: int = 0,
    filter_premium: bool = True,
    proxy_base: Optional[str] = None,
) -> List[VideoResult]:
    """Filter one engine's batch in order, optionally proxying media URLs."""
    kept: List[VideoResult] = []
    for result in results:
        if not passes_min_duration(result, min_duration_seconds):
            continue
        if filter_premium and result.is_premium:
            continue
        if not matches_operators(result, parsed):
            continue
        if proxy_base:
            result = result.model_copy(update={
                "thumbnail": proxied_media_url(result.thumbnail, proxy_base) or "",
                "preview_url": proxied_media_url(result.preview_url, proxy_base),
            })
        kept.append(result)
    return kept
