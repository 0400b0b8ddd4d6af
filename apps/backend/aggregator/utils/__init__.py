"""URL helpers shared across the aggregator."""

from aggregator.utils.url import absolute_url, canonicalize_url, dedupe_key

__all__ = [
    "absolute_url",
    "canonicalize_url",
    "dedupe_key",
]
