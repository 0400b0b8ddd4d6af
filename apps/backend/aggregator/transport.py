"""Outbound HTTP transport selection.

Engines never build their own clients; the coordinator asks this provider
for one and passes it down. When anonymized routing is enabled every engine
request goes through the configured SOCKS5 proxy.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Set
from urllib.parse import urlencode, urlsplit

import httpx

from aggregator.config import SearchSettings

logger = logging.getLogger(__name__)


def browser_headers(user_agent: str) -> Dict[str, str]:
    return {
        "User-Agent": user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,application/json;q=0.8,*/*;q=0.7",
        "Accept-Language": "en-US,en;q=0.9",
        "DNT": "1",
        "Upgrade-Insecure-Requests": "1",
    }


class TransportProvider:
    """Hands out shared ``httpx.AsyncClient`` instances, direct or via proxy."""

    def __init__(self, settings: SearchSettings):
        self._settings = settings
        self._clients: Dict[bool, httpx.AsyncClient] = {}
        self._retired: List[httpx.AsyncClient] = []
        self._closers: Set[asyncio.Task] = set()

    def apply(self, settings: SearchSettings) -> None:
        """Adopt new settings; clients built for the old ones are retired, not closed mid-request."""
        changed = (
            settings.tor_proxy_url != self._settings.tor_proxy_url
            or settings.user_agent != self._settings.user_agent
            or settings.search_deadline_seconds != self._settings.search_deadline_seconds
        )
        drain_seconds = max(settings.search_deadline_seconds, self._settings.search_deadline_seconds)
        self._settings = settings
        if changed:
            self._retire(list(self._clients.values()), drain_seconds)
            self._clients = {}
        logger.info(f"[Transport] anonymized routing {'on' if settings.tor_enabled else 'off'}")

    def _retire(self, clients: List[httpx.AsyncClient], drain_seconds: float) -> None:
        if not clients:
            return
        self._retired.extend(clients)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop yet; aclose() at shutdown picks them up.
            return
        task = loop.create_task(self._close_after(clients, drain_seconds))
        self._closers.add(task)
        task.add_done_callback(self._closers.discard)

    async def _close_after(self, clients: List[httpx.AsyncClient], delay: float) -> None:
        # Requests that picked up these clients finish within one search deadline.
        await asyncio.sleep(delay)
        for client in clients:
            if client in self._retired:
                self._retired.remove(client)
                await client.aclose()
        logger.debug(f"[Transport] closed {len(clients)} retired clients")

    def is_anonymized(self) -> bool:
        return self._settings.tor_enabled

    def _build_client(self, anonymized: bool) -> httpx.AsyncClient:
        kwargs = {
            "headers": browser_headers(self._settings.user_agent),
            "follow_redirects": True,
            # Per-engine deadlines are enforced by the coordinator; this only
            # stops a single socket operation from hanging forever.
            "timeout": httpx.Timeout(self._settings.search_deadline_seconds),
            "limits": httpx.Limits(max_connections=200, max_keepalive_connections=40),
        }
        if anonymized:
            kwargs["proxy"] = self._settings.tor_proxy_url
        return httpx.AsyncClient(**kwargs)

    def get_client(self, anonymized: Optional[bool] = None) -> httpx.AsyncClient:
        """Shared client; ``anonymized=None`` follows the current setting."""
        use_proxy = self.is_anonymized() if anonymized is None else anonymized
        client = self._clients.get(use_proxy)
        if client is None or client.is_closed:
            client = self._build_client(use_proxy)
            self._clients[use_proxy] = client
        return client

    async def check_proxy(self, timeout: float = 3.0) -> bool:
        """True if the SOCKS proxy accepts TCP connections."""
        parts = urlsplit(self._settings.tor_proxy_url)
        host, port = parts.hostname or "127.0.0.1", parts.port or 9050
        try:
            _, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout=timeout)
        except (OSError, asyncio.TimeoutError):
            return False
        writer.close()
        await writer.wait_closed()
        return True

    async def aclose(self) -> None:
        for task in list(self._closers):
            task.cancel()
        self._closers = set()
        for client in list(self._clients.values()) + self._retired:
            await client.aclose()
        self._clients = {}
        self._retired = []


def proxied_media_url(url: Optional[str], proxy_base: str) -> Optional[str]:
    """Map a source thumbnail/preview URL onto the local media proxy, if one is configured."""
    if not url or not proxy_base:
        return url
    return f"{proxy_base}?{urlencode({'url': url})}"
