"""Rate limiting utilities."""
import time
from collections import defaultdict
from typing import Dict, List

from fastapi import Request

from exceptions import RateLimitError

# Simple in-memory sliding window, per client IP
rate_limit_store: Dict[str, List[float]] = defaultdict(list)
RATE_LIMIT_WINDOW = 60  # seconds
RATE_LIMIT_MAX = {
    "search": 60,         # 60 searches per minute
    "autocomplete": 120,  # 120 suggestion lookups per minute
}


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def check_rate_limit(key: str, limit_type: str) -> bool:
    """Returns True if request is allowed, False if rate limited."""
    now = time.time()
    window_start = now - RATE_LIMIT_WINDOW

    # Clean old entries
    rate_limit_store[key] = [t for t in rate_limit_store[key] if t > window_start]

    max_requests = RATE_LIMIT_MAX.get(limit_type, 100)
    if len(rate_limit_store[key]) >= max_requests:
        return False

    rate_limit_store[key].append(now)
    return True


def _enforce(request: Request, limit_type: str) -> None:
    key = f"{limit_type}:{client_ip(request)}"
    if not check_rate_limit(key, limit_type):
        raise RateLimitError(
            "Too many requests",
            detail={"limit": RATE_LIMIT_MAX.get(limit_type, 100), "window_seconds": RATE_LIMIT_WINDOW},
            retry_after=RATE_LIMIT_WINDOW,
        )


async def limit_search(request: Request) -> None:
    _enforce(request, "search")


async def limit_autocomplete(request: Request) -> None:
    _enforce(request, "autocomplete")
