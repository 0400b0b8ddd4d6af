from unittest.mock import MagicMock, patch

import pytest

from exceptions import RateLimitError
from routes import rate_limit
from routes.rate_limit import check_rate_limit, client_ip, limit_search


def _request(host="1.2.3.4", forwarded=None):
    request = MagicMock()
    request.headers = {"x-forwarded-for": forwarded} if forwarded else {}
    request.client.host = host
    return request


def test_window_allows_up_to_limit():
    with patch.dict(rate_limit.RATE_LIMIT_MAX, {"search": 2}):
        assert check_rate_limit("search:a", "search") is True
        assert check_rate_limit("search:a", "search") is True
        assert check_rate_limit("search:a", "search") is False
        assert check_rate_limit("search:b", "search") is True


def test_old_entries_expire():
    with patch.dict(rate_limit.RATE_LIMIT_MAX, {"search": 1}), patch("routes.rate_limit.time") as clock:
        clock.time.return_value = 1000.0
        assert check_rate_limit("search:a", "search") is True
        assert check_rate_limit("search:a", "search") is False
        clock.time.return_value = 1000.0 + rate_limit.RATE_LIMIT_WINDOW + 1
        assert check_rate_limit("search:a", "search") is True


def test_client_ip_prefers_forwarded_header():
    assert client_ip(_request(forwarded="9.9.9.9, 10.0.0.1")) == "9.9.9.9"
    assert client_ip(_request()) == "1.2.3.4"


@pytest.mark.asyncio
async def test_dependency_raises_rate_limit_error():
    with patch.dict(rate_limit.RATE_LIMIT_MAX, {"search": 1}):
        await limit_search(_request())
        with pytest.raises(RateLimitError) as exc_info:
            await limit_search(_request())
    assert exc_info.value.status_code == 429
    assert exc_info.value.retry_after == 60
