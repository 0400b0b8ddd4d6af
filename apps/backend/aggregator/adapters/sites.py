"""HTML engines with site-specific item parsing.

Each parser pulls the fields its site marks up reliably and hands the rest
to the generic extraction chain through ``overrides``.
"""

from __future__ import annotations

from typing import Any, Dict

from bs4.element import Tag

from aggregator.adapters.html import HtmlEngine
from aggregator.extraction import (
    clean_text,
    first_attr,
    has_premium_path,
    parse_duration,
    parse_generic_item,
    parse_views,
    select_text,
)
from aggregator.models import EngineCapabilities, VideoResult
from aggregator.utils.url import absolute_url


def _href(node: Tag, selector: str, base_url: str) -> str:
    return absolute_url(first_attr(node.select_one(selector), ("href",)), base_url)


def _duration_fields(text: str) -> Dict[str, Any]:
    _, seconds = parse_duration(text)
    return {"duration_seconds": seconds} if seconds else {}


def _views_fields(text: str) -> Dict[str, Any]:
    display, count = parse_views(text)
    return {"views": display, "views_count": count} if count else {}


class PornHubEngine(HtmlEngine):
    def __init__(self, **kwargs):
        super().__init__(
            "pornhub",
            "PornHub",
            "https://www.pornhub.com",
            1,
            path="/video/search?search={query}&page={page}",
            selector="li.videoBox, li.pcVideoListItem, div.phimage",
            capabilities=EngineCapabilities(
                has_preview=True, has_duration=True, has_views=True, preview_source="data-mediabook"
            ),
            features=("pagination", "sorting", "thumbnail_preview"),
            **kwargs,
        )

    def parse_item(self, node: Tag, base_url: str, source: str, source_display: str) -> VideoResult:
        link = node.select_one("a.linkVideoThumb, a.videoPreviewBg, a")
        img = node.find("img")
        overrides: Dict[str, Any] = {
            "url": absolute_url(first_attr(link, ("href",)), base_url),
            "title": first_attr(node.select_one("span.title a, a[title]"), ("title",)) or first_attr(link, ("title",)),
            "thumbnail": absolute_url(
                first_attr(img, ("data-thumb_url", "data-src", "data-mediumthumb", "src")), base_url
            ),
            "preview_url": first_attr(img, ("data-mediabook",)) or first_attr(link, ("data-mediabook",)),
        }
        overrides.update(_duration_fields(select_text(node, "var.duration, .duration, .time")))
        overrides.update(_views_fields(select_text(node, "var.views, .views, span.views")))
        return parse_generic_item(node, base_url, source, source_display, overrides)


class RedTubeEngine(HtmlEngine):
    def __init__(self, **kwargs):
        super().__init__(
            "redtube",
            "RedTube",
            "https://www.redtube.com",
            1,
            path="/?search={query}&page={page}",
            selector="li.videoblock_list, li.thumbnail-card, li.videoblock-default, li.video-box",
            capabilities=EngineCapabilities(
                has_preview=True, has_duration=True, has_views=True, preview_source="data-mediabook"
            ),
            features=("pagination", "thumbnail_preview"),
            **kwargs,
        )

    def parse_item(self, node: Tag, base_url: str, source: str, source_display: str) -> VideoResult:
        title_link = node.select_one("a.video-title-text, a.tm_video_title")
        img = node.select_one("img.js_thumbImageTag, img.thumb, img")
        srcset = first_attr(img, ("data-srcset",)).split(" ")[0]
        overrides: Dict[str, Any] = {
            "url": absolute_url(first_attr(title_link, ("href",)), base_url)
            or _href(node, "a.video_link, a.tm_video_link, a", base_url),
            "title": first_attr(title_link, ("title",)) or (clean_text(title_link.get_text(" ")) if title_link else ""),
            "thumbnail": absolute_url(first_attr(img, ("data-src",)) or srcset or first_attr(img, ("src",)), base_url),
            "preview_url": first_attr(img, ("data-mediabook",)),
        }
        overrides.update(_duration_fields(select_text(node, ".video-properties, .tm_video_duration, .duration span")))
        overrides.update(_views_fields(select_text(node, ".info-views")))
        return parse_generic_item(node, base_url, source, source_display, overrides)


class XVideosEngine(HtmlEngine):
    def __init__(self, **kwargs):
        super().__init__(
            "xvideos",
            "XVideos",
            "https://www.xvideos.com",
            1,
            path="/?k={query}&p={page}",
            selector="div.thumb-block, div.mozaique div.thumb",
            # Upstream pages are zero-based.
            first_page=0,
            capabilities=EngineCapabilities(has_preview=True, has_duration=True, preview_source="data-preview"),
            features=("pagination", "thumbnail_preview"),
            **kwargs,
        )

    def parse_item(self, node: Tag, base_url: str, source: str, source_display: str) -> VideoResult:
        link = node.find("a")
        img = node.find("img")
        url = absolute_url(first_attr(link, ("href",)), base_url)
        overrides: Dict[str, Any] = {
            "url": url,
            "is_premium": has_premium_path(url),
            "title": first_attr(node.select_one("p.title a, a[title]"), ("title",)) or first_attr(link, ("title",)),
            "thumbnail": absolute_url(first_attr(img, ("data-src", "src")), base_url),
            "preview_url": first_attr(img, ("data-preview",))
            or first_attr(node.select_one(".thumb-inside, .thumb"), ("data-preview",)),
        }
        overrides.update(_duration_fields(select_text(node, ".duration, span.duration")))
        overrides.update(_views_fields(select_text(node, ".metadata span.views, .views")))
        return parse_generic_item(node, base_url, source, source_display, overrides)


class XNXXEngine(HtmlEngine):
    def __init__(self, **kwargs):
        super().__init__(
            "xnxx",
            "XNXX",
            "https://www.xnxx.com",
            1,
            path="/search/{query}/{page}",
            selector="div.thumb-block",
            first_page=0,
            capabilities=EngineCapabilities(has_duration=True, has_views=True),
            **kwargs,
        )

    def parse_item(self, node: Tag, base_url: str, source: str, source_display: str) -> VideoResult:
        link = node.select_one("div.thumb-under p a[href]") or node.select_one("a[href]")
        img = node.select_one("div.thumb-inside img")
        url = absolute_url(first_attr(link, ("href",)), base_url)
        overrides: Dict[str, Any] = {
            "url": url,
            "is_premium": has_premium_path(url),
            "title": first_attr(link, ("title",)) or (clean_text(link.get_text(" ")) if link else ""),
            "thumbnail": absolute_url(first_attr(img, ("data-src", "data-webp", "src")), base_url),
            "quality": select_text(node, "span.video-hd"),
        }
        metadata = node.select_one("p.metadata")
        if metadata is not None:
            # Duration is the bare text of p.metadata, outside its spans.
            bare_text = " ".join(str(child) for child in metadata.find_all(string=True, recursive=False))
            overrides.update(_duration_fields(bare_text))
        views_span = node.select_one("p.metadata span.right")
        if views_span is not None:
            overrides.update(_views_fields(clean_text(views_span.get_text(" ")).split(" ")[0]))
        return parse_generic_item(node, base_url, source, source_display, overrides)


class YouPornEngine(HtmlEngine):
    def __init__(self, **kwargs):
        super().__init__(
            "youporn",
            "YouPorn",
            "https://www.youporn.com",
            2,
            path="/search/?query={query}&page={page}",
            selector=".video-box",
            capabilities=EngineCapabilities(has_duration=True, has_views=True),
            **kwargs,
        )

    def parse_item(self, node: Tag, base_url: str, source: str, source_display: str) -> VideoResult:
        img = node.select_one("img.thumb-image")
        overrides: Dict[str, Any] = {
            "url": _href(node, "a.video-box-image, a.tm_video_link", base_url),
            "title": select_text(node, ".video-title-text"),
            "thumbnail": absolute_url(first_attr(img, ("data-src", "data-original", "src")), base_url),
        }
        overrides.update(_duration_fields(select_text(node, ".video-duration")))
        overrides.update(_views_fields(select_text(node, ".video-views")))
        return parse_generic_item(node, base_url, source, source_display, overrides)


class PornMDEngine(HtmlEngine):
    """PornMD aggregates other tubes; its cards link out to the hosting site."""

    def __init__(self, **kwargs):
        super().__init__(
            "pornmd",
            "PornMD",
            "https://www.pornmd.com",
            2,
            path="/straight/{query}?page={page}",
            selector="div.card.sub",
            **kwargs,
        )

    def parse_item(self, node: Tag, base_url: str, source: str, source_display: str) -> VideoResult:
        url = _href(node, "a[href]", base_url)
        return parse_generic_item(
            node, base_url, source, source_display, {"url": url, "is_premium": has_premium_path(url)}
        )
