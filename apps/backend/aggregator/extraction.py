"""Heuristic field extraction for HTML search result pages.

Every field is described by an ordered tuple of strategies; the first one
that yields a non-empty value wins. Engines without bespoke parsing hand
their result item nodes to :func:`parse_generic_item`; bespoke engines reuse
the same strategies for the fields they do not override.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple
from urllib.parse import urlsplit

from bs4 import BeautifulSoup
from bs4.element import Tag
from pydantic import ValidationError as PydanticValidationError

from exceptions import ExtractionSkip
from aggregator.models import VideoResult, normalize_tags
from aggregator.utils.url import absolute_url

logger = logging.getLogger(__name__)

# Selector and attribute tables, in priority order.
TITLE_SELECTORS = ".title, .name, .video-title, a.video-title, h4, h3"
THUMBNAIL_ATTRS = ("data-src", "data-original", "data-lazy-src", "src")
PREVIEW_ATTRS = (
    "data-mediabook",
    "data-preview",
    "data-video-preview",
    "data-rollover",
    "data-preview-url",
    "data-gif",
    "data-webm",
    "data-mp4",
    "data-thumb-url",
    "data-trailer",
    "data-teaser",
)
DURATION_SELECTORS = (
    ".duration", ".dur", ".time", ".length", ".video-duration", "var.duration",
    "span.duration", ".thumb-icon.video-duration", "em.time_thumb em", ".time_thumb",
    ".video_duration", ".video__time", ".thumb__time", ".thumb-time", ".thumb-duration",
    ".video-time", "time", "[data-duration]", ".meta-duration", ".card-duration",
)
DURATION_ATTRS = ("data-content", "data-duration")
VIEWS_SELECTORS = (
    ".views", ".view", ".cnt", "span.views", ".video-views", ".video__views",
    ".thumb__views", ".meta-views", ".stats", ".view-count", ".viewCount",
    ".video-count", ".added-views",
)
RATING_SELECTORS = (
    ".rating", ".rate", ".video-rating", ".thumb__rating", ".score", ".likes", ".percent",
)
QUALITY_SELECTORS = (
    ".quality", ".hd-badge", ".quality-badge",
    "[class*='quality']", "[class*='hd']", "[class*='4k']",
)
TAG_SELECTORS = (
    ".tags a", ".tag a", ".categories a", ".category a", "a.tag", "a.category",
    ".video-tags a", ".video-categories a", ".thumb-tags a", ".card-tags a",
    ".keywords a", ".labels a", ".label", ".badge", ".chip",
)
TAG_ATTRS = ("data-tags", "data-category", "data-categories")
PERFORMER_SELECTORS = (
    ".pornstar", ".model", ".performer", ".actor", ".actress", ".uploader", ".author",
    ".channel", ".studio", "a.pornstar", "a.model", ".video-pornstar", ".video-model",
)
PERFORMER_ATTRS = ("data-pornstar", "data-model", "data-performer")
PREMIUM_PATH_SEGMENTS = frozenset({"premium", "gold", "vip", "paid"})
PREMIUM_SELECTORS = "[class*='premium'], [class*='vip'], .gold, .paid, .members-only"

_CLOCK_PATTERN = re.compile(r"(\d+):(\d{1,2})(?::(\d{1,2}))?")
_HOURS_PATTERN = re.compile(r"(\d+)\s*h")
_MINUTES_PATTERN = re.compile(r"(\d+)\s*m(?:in)?")
_SECONDS_PATTERN = re.compile(r"(\d+)\s*s")
_VIEWS_PATTERN = re.compile(r"(\d[\d,. ]*)\s*([kmb])?", re.IGNORECASE)
_QUALITY_PATTERN = re.compile(r"\b(4k|2160p|1440p|1080p|720p|480p|360p|hd|uhd)\b", re.IGNORECASE)
_NUMBER_PATTERN = re.compile(r"\d+(?:\.\d+)?")

_VIEW_MULTIPLIERS = {"k": 1_000, "m": 1_000_000, "b": 1_000_000_000}


def clean_text(value: Optional[str]) -> str:
    """Collapse runs of whitespace and trim."""
    return " ".join((value or "").split())


def parse_document(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def first_attr(node: Optional[Tag], attrs: Iterable[str]) -> str:
    """First non-empty attribute value of ``node`` among ``attrs``."""
    if node is None:
        return ""
    for attr in attrs:
        value = node.get(attr)
        if isinstance(value, list):
            value = " ".join(value)
        value = clean_text(value)
        if value:
            return value
    return ""


def select_text(node: Tag, selector: str) -> str:
    found = node.select_one(selector)
    return clean_text(found.get_text(" ")) if found is not None else ""


# ---------------------------------------------------------------------------
# Parsers for individual field values
# ---------------------------------------------------------------------------

def format_duration(seconds: Optional[int]) -> str:
    """``H:MM:SS`` for an hour or more, ``M:SS`` otherwise; "" for unknown."""
    if not seconds or seconds <= 0:
        return ""
    hours, remainder = divmod(int(seconds), 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def parse_duration(text: Optional[str]) -> Tuple[str, int]:
    """Parse ``12:34``, ``1:02:03``, ``754``, ``12 min`` or ``1h 5m`` into (display, seconds).

    Returns ("", 0) when nothing usable is found.
    """
    text = clean_text(text).lower()
    if not text:
        return "", 0

    seconds = 0
    clock = _CLOCK_PATTERN.search(text)
    if clock:
        first, second, third = clock.groups()
        if third is not None:
            seconds = int(first) * 3600 + int(second) * 60 + int(third)
        else:
            seconds = int(first) * 60 + int(second)
    elif text.isdigit():
        seconds = int(text)
    else:
        hours = _HOURS_PATTERN.search(text)
        minutes = _MINUTES_PATTERN.search(text)
        secs = _SECONDS_PATTERN.search(text)
        if hours:
            seconds += int(hours.group(1)) * 3600
        if minutes:
            seconds += int(minutes.group(1)) * 60
        if secs:
            seconds += int(secs.group(1))

    if seconds <= 0:
        return "", 0
    return format_duration(seconds), seconds


def format_view_count(count: Optional[int]) -> str:
    if count is None or count < 0:
        return ""
    if count >= 1_000_000_000:
        return f"{count / 1_000_000_000:.1f}B"
    if count >= 1_000_000:
        return f"{count / 1_000_000:.1f}M"
    if count >= 1_000:
        return f"{count / 1_000:.1f}K"
    return str(count)


def parse_views(text: Optional[str]) -> Tuple[str, int]:
    """Parse ``1.2M views``, ``500K`` or ``12,345`` into (display, count)."""
    text = clean_text(text)
    if not text:
        return "", 0

    stripped = re.sub(r"\bviews?\b", "", text, flags=re.IGNORECASE).strip()
    match = _VIEWS_PATTERN.search(stripped)
    if not match:
        return "", 0

    number, suffix = match.groups()
    number = number.replace(",", "").replace(" ", "").rstrip(".")
    try:
        value = float(number)
    except ValueError:
        return "", 0

    count = int(value * _VIEW_MULTIPLIERS.get((suffix or "").lower(), 1))
    display = stripped if suffix else format_view_count(count)
    return display, count


def parse_rating(text: Optional[str]) -> Optional[float]:
    """Normalize ``93%``, ``4.5/5`` or ``4.5 stars`` to a 0-100 scale."""
    text = clean_text(text).lower()
    if not text:
        return None

    if "/" in text:
        parts = text.split("/", 1)
        numerator = _NUMBER_PATTERN.search(parts[0])
        denominator = _NUMBER_PATTERN.search(parts[1])
        if numerator and denominator and float(denominator.group()) > 0:
            return round(float(numerator.group()) / float(denominator.group()) * 100, 1)
        return None

    match = _NUMBER_PATTERN.search(text)
    if not match:
        return None
    value = float(match.group())
    if "%" in text or value > 10:
        return min(value, 100.0)
    # Star ratings.
    return round(value / 5 * 100, 1)


def parse_quality(text: Optional[str]) -> str:
    match = _QUALITY_PATTERN.search(clean_text(text))
    if not match:
        return ""
    token = match.group(1).upper()
    if token in ("2160P", "UHD"):
        return "4K"
    return token.lower() if token.endswith("P") else token


def extract_json_object(text: str, marker: str) -> Optional[Dict[str, Any]]:
    """Decode the JSON object that immediately follows ``marker`` in ``text``.

    The object's extent is found by counting braces outside string literals,
    so trailing script after the object never reaches the JSON decoder.
    Returns None when the marker is missing or the object is unbalanced or
    undecodable.
    """
    index = text.find(marker)
    if index == -1:
        return None
    start = index + len(marker)
    while start < len(text) and text[start].isspace():
        start += 1
    if start >= len(text) or text[start] != "{":
        return None

    depth = 0
    in_string = False
    escaped = False
    for position in range(start, len(text)):
        char = text[position]
        if escaped:
            escaped = False
            continue
        if in_string:
            if char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                try:
                    decoded = json.loads(text[start:position + 1])
                except json.JSONDecodeError:
                    return None
                return decoded if isinstance(decoded, dict) else None
    return None


# ---------------------------------------------------------------------------
# Per-field strategy chains
# ---------------------------------------------------------------------------

@dataclass
class ItemContext:
    """The nodes of one result item that field strategies look at."""

    node: Tag
    link: Optional[Tag]
    img: Optional[Tag]
    base_url: str

    @classmethod
    def build(cls, node: Tag, base_url: str) -> "ItemContext":
        link = node if node.name == "a" else node.find("a")
        return cls(node=node, link=link, img=node.find("img"), base_url=base_url)


Strategy = Callable[[ItemContext], Any]


def first_of(strategies: Sequence[Strategy], ctx: ItemContext) -> Any:
    for strategy in strategies:
        value = strategy(ctx)
        if value:
            return value
    return None


def _link_attr(attr: str) -> Strategy:
    return lambda ctx: first_attr(ctx.link, (attr,))


def _img_attr(attr: str) -> Strategy:
    return lambda ctx: first_attr(ctx.img, (attr,))


def _text_at(selector: str) -> Strategy:
    return lambda ctx: select_text(ctx.node, selector)


def _link_text(ctx: ItemContext) -> str:
    return clean_text(ctx.link.get_text(" ")) if ctx.link is not None else ""


def _link_href(ctx: ItemContext) -> str:
    return absolute_url(first_attr(ctx.link, ("href",)), ctx.base_url)


def _thumbnail(ctx: ItemContext) -> str:
    raw = first_attr(ctx.img, THUMBNAIL_ATTRS)
    if not raw or raw.startswith("data:"):
        # Placeholder pixels; fall back to plain src.
        raw = first_attr(ctx.img, ("src",))
    return absolute_url(raw, ctx.base_url)


def _preview(ctx: ItemContext) -> str:
    for holder in (ctx.node, ctx.img, ctx.link):
        value = first_attr(holder, PREVIEW_ATTRS)
        if value:
            return absolute_url(value, ctx.base_url)
    return ""


def _duration(ctx: ItemContext) -> Tuple[str, int]:
    for selector in DURATION_SELECTORS:
        found = ctx.node.select_one(selector)
        if found is None:
            continue
        raw = first_attr(found, DURATION_ATTRS) or clean_text(found.get_text(" "))
        display, seconds = parse_duration(raw)
        if seconds:
            return display, seconds
    return parse_duration(first_attr(ctx.node, ("data-duration",)))


def _views(ctx: ItemContext) -> Tuple[str, int]:
    for selector in VIEWS_SELECTORS:
        display, count = parse_views(select_text(ctx.node, selector))
        if count:
            return display, count
    return "", 0


def _rating(ctx: ItemContext) -> Optional[float]:
    for selector in RATING_SELECTORS:
        rating = parse_rating(select_text(ctx.node, selector))
        if rating is not None:
            return rating
    return None


def _quality(ctx: ItemContext) -> str:
    for selector in QUALITY_SELECTORS:
        found = ctx.node.select_one(selector)
        if found is None:
            continue
        quality = parse_quality(found.get_text(" "))
        if quality:
            return quality
        classes = " ".join(found.get("class") or []).lower()
        if "4k" in classes:
            return "4K"
        if "hd" in classes:
            return "HD"
    return ""


def _tags(ctx: ItemContext) -> List[str]:
    raw: List[str] = []
    for selector in TAG_SELECTORS:
        raw.extend(clean_text(found.get_text(" ")) for found in ctx.node.select(selector))
    for holder in [ctx.node] + ctx.node.select("[data-tags]"):
        for attr in TAG_ATTRS:
            value = first_attr(holder, (attr,))
            if value:
                raw.extend(value.split(","))
    return normalize_tags(raw)


def _performer(ctx: ItemContext) -> str:
    for selector in PERFORMER_SELECTORS:
        text = select_text(ctx.node, selector)
        if text:
            return text
    holder = ctx.node.select_one("[data-pornstar], [data-model], [data-performer]")
    return first_attr(holder, PERFORMER_ATTRS) or first_attr(ctx.node, PERFORMER_ATTRS)


TITLE_STRATEGIES: Tuple[Strategy, ...] = (
    _link_attr("title"),
    _img_attr("alt"),
    _text_at(TITLE_SELECTORS),
    _text_at("span > em"),
    _text_at("strong span, strong em"),
    _link_text,
)


def is_premium(ctx: ItemContext) -> bool:
    """True when the card carries a premium or members-only badge."""
    return ctx.node.select_one(PREMIUM_SELECTORS) is not None


def has_premium_path(url: str) -> bool:
    """True when a path segment of ``url`` is a premium marker, e.g. ``/gold/``."""
    segments = urlsplit(url or "").path.lower().split("/")
    return any(segment in PREMIUM_PATH_SEGMENTS for segment in segments)


def parse_generic_item(
    node: Tag,
    base_url: str,
    source: str,
    source_display: str,
    overrides: Optional[Dict[str, Any]] = None,
) -> VideoResult:
    """Build a VideoResult from one result item node.

    ``overrides`` lets a bespoke engine supply fields it extracted itself;
    any field it leaves out falls through to the generic strategies.
    Raises ExtractionSkip when no link or title can be found.
    """
    overrides = overrides or {}
    ctx = ItemContext.build(node, base_url)

    url = overrides.get("url") or _link_href(ctx)
    if not url:
        raise ExtractionSkip("no link")
    title = overrides.get("title") or first_of(TITLE_STRATEGIES, ctx)
    if not title:
        raise ExtractionSkip("no title")

    if "duration_seconds" in overrides:
        seconds = overrides["duration_seconds"] or 0
        duration = format_duration(seconds)
    else:
        duration, seconds = _duration(ctx)
    if "views_count" in overrides:
        views_count = overrides["views_count"] or 0
        views = overrides.get("views") or format_view_count(views_count)
    else:
        views, views_count = _views(ctx)

    fields: Dict[str, Any] = {
        "title": title,
        "url": url,
        "thumbnail": overrides.get("thumbnail") or _thumbnail(ctx),
        "preview_url": overrides.get("preview_url") or _preview(ctx) or None,
        "duration": duration or None,
        "duration_seconds": seconds or None,
        "views": views or None,
        "views_count": views_count or None,
        "rating": overrides.get("rating", _rating(ctx)),
        "quality": overrides.get("quality") or _quality(ctx) or None,
        "tags": overrides.get("tags") or _tags(ctx),
        "performer": overrides.get("performer") or _performer(ctx) or None,
        "is_premium": bool(overrides.get("is_premium")) or is_premium(ctx),
        "source": source,
        "source_display": source_display,
    }
    try:
        return VideoResult(**fields)
    except PydanticValidationError as exc:
        raise ExtractionSkip(str(exc)) from exc


ItemParser = Callable[[Tag, str, str, str], VideoResult]


def extract_items(
    html: str,
    selector: str,
    base_url: str,
    source: str,
    source_display: str,
    parse_item: ItemParser = parse_generic_item,
) -> List[VideoResult]:
    """Parse every node matching ``selector`` in page order, skipping malformed items."""
    document = parse_document(html)
    results: List[VideoResult] = []
    skipped = 0
    for node in document.select(selector):
        try:
            results.append(parse_item(node, base_url, source, source_display))
        except ExtractionSkip:
            skipped += 1
    if skipped:
        logger.debug(f"[Extraction:{source}] skipped {skipped} malformed items")
    return results
