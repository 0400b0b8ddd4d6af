import asyncio

import pytest

from aggregator.config import SearchSettings
from aggregator.transport import TransportProvider, browser_headers, proxied_media_url


def test_browser_headers_carry_user_agent():
    headers = browser_headers("UA/1.0")
    assert headers["User-Agent"] == "UA/1.0"
    assert "Accept-Language" in headers


def test_proxied_media_url():
    assert proxied_media_url("https://img.test/a.jpg?x=1", "/proxy") == "/proxy?url=https%3A%2F%2Fimg.test%2Fa.jpg%3Fx%3D1"
    assert proxied_media_url("https://img.test/a.jpg", "") == "https://img.test/a.jpg"
    assert proxied_media_url(None, "/proxy") is None


@pytest.mark.asyncio
async def test_clients_are_shared_per_routing_mode():
    provider = TransportProvider(SearchSettings(user_agent="UA/1.0"))
    try:
        direct = provider.get_client()
        assert provider.get_client() is direct
        assert provider.get_client(anonymized=False) is direct
        assert direct.headers["User-Agent"] == "UA/1.0"
        assert provider.is_anonymized() is False
    finally:
        await provider.aclose()


@pytest.mark.asyncio
async def test_apply_follows_tor_toggle_and_retires_on_user_agent_change():
    provider = TransportProvider(SearchSettings())
    try:
        direct = provider.get_client()

        provider.apply(SearchSettings(tor_enabled=True))
        assert provider.is_anonymized() is True
        # Toggling routing alone keeps the existing clients.
        assert provider.get_client(anonymized=False) is direct

        provider.apply(SearchSettings(tor_enabled=True, user_agent="UA/2.0"))
        fresh = provider.get_client(anonymized=False)
        assert fresh is not direct
        assert fresh.headers["User-Agent"] == "UA/2.0"
        assert direct.is_closed is False
    finally:
        await provider.aclose()
    assert direct.is_closed is True


@pytest.mark.asyncio
async def test_check_proxy_reports_unreachable_port():
    provider = TransportProvider(SearchSettings(tor_proxy_url="socks5://127.0.0.1:1"))
    assert await provider.check_proxy(timeout=0.5) is False


@pytest.mark.asyncio
async def test_retired_clients_close_after_one_search_deadline():
    fast = {"engine_timeout_seconds": 0.01, "search_deadline_seconds": 0.05}
    provider = TransportProvider(SearchSettings(**fast))
    try:
        old = provider.get_client()
        provider.apply(SearchSettings(user_agent="UA/2.0", **fast))
        assert old.is_closed is False

        await asyncio.sleep(0.2)
        assert old.is_closed is True
    finally:
        await provider.aclose()


@pytest.mark.asyncio
async def test_deadline_change_rebuilds_clients():
    provider = TransportProvider(SearchSettings())
    try:
        old = provider.get_client()
        provider.apply(SearchSettings(search_deadline_seconds=40))
        fresh = provider.get_client()

        assert fresh is not old
        assert fresh.timeout.read == 40
    finally:
        await provider.aclose()
