"""URL helpers shared by extraction, result IDs and cross-engine dedupe."""

from __future__ import annotations

import re
from typing import List, Sequence, Tuple
from urllib.parse import parse_qsl, urljoin, urlsplit, urlunsplit, urlencode

DEFAULT_TRACKING_KEYS: Sequence[str] = (
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_term",
    "utm_content",
    "ref",
    "affid",
    "pkey",
    "wmid",
    "campaign",
)

DEFAULT_TRACKING_PREFIXES: Sequence[str] = (
    "utm",
    "ga_",
)

_MULTI_SLASH_PATTERN = re.compile(r"/{2,}")


def absolute_url(href: str, base_url: str) -> str:
    """Resolve an href found on a page of ``base_url`` to an absolute URL.

    Protocol-relative values are upgraded to https and root- or
    path-relative values are joined to the base. Returns "" for empty,
    fragment-only or javascript: hrefs.
    """
    href = (href or "").strip()
    if not href or href.startswith("#") or href.lower().startswith(("javascript:", "data:")):
        return ""
    if href.startswith("//"):
        return f"https:{href}"
    if href.lower().startswith(("http://", "https://")):
        return href
    if not base_url:
        return ""
    return urljoin(base_url.rstrip("/") + "/", href)


def _drop_tracking_params(
    params: List[Tuple[str, str]],
    tracking_keys: Sequence[str],
    tracking_prefixes: Sequence[str],
) -> List[Tuple[str, str]]:
    key_set = {key.lower() for key in tracking_keys}
    cleaned: List[Tuple[str, str]] = []
    for key, value in params:
        key_lower = key.lower()
        if key_lower in key_set:
            continue
        if any(key_lower.startswith(prefix) for prefix in tracking_prefixes):
            continue
        cleaned.append((key, value))
    return cleaned


def canonicalize_url(
    raw_url: str,
    *,
    tracking_keys: Sequence[str] = DEFAULT_TRACKING_KEYS,
    tracking_prefixes: Sequence[str] = DEFAULT_TRACKING_PREFIXES,
) -> str:
    """Stable form of a video page URL.

    Lowercases the host, strips ``www.``, default ports, fragments,
    trailing slashes and tracking params, and sorts the remaining query.
    Two links to the same video page on the same site canonicalize
    identically regardless of scheme.
    """
    raw_url = (raw_url or "").strip()
    if not raw_url:
        return ""
    if raw_url.startswith("//"):
        raw_url = f"https:{raw_url}"

    split = urlsplit(raw_url)
    if not split.netloc:
        return raw_url

    netloc = split.netloc.lower()
    if netloc.startswith("www."):
        netloc = netloc[4:]
    if netloc.endswith((":80", ":443")):
        netloc = netloc.rsplit(":", 1)[0]

    path = _MULTI_SLASH_PATTERN.sub("/", split.path or "/")
    if path != "/":
        path = path.rstrip("/") or "/"

    query_pairs = parse_qsl(split.query, keep_blank_values=False)
    query_pairs = _drop_tracking_params(query_pairs, tracking_keys, tracking_prefixes)
    query_pairs.sort(key=lambda pair: (pair[0].lower(), pair[1]))
    query = urlencode(query_pairs, doseq=True)

    return urlunsplit(("https", netloc, path, query, ""))


def dedupe_key(url: str) -> str:
    """Key used for cross-engine dedupe in meta-search mode.

    Only the host is case-folded. Paths and query values keep their case,
    video slugs and IDs are case-sensitive on several sites.
    """
    return canonicalize_url(url).rstrip("/")


__all__ = ["absolute_url", "canonicalize_url", "dedupe_key"]
