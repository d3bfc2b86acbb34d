"""
Tests for the Finnhub market data client.

HTTP is patched at ``requests.get``; no network access.
"""
from unittest.mock import Mock, patch
from urllib.parse import parse_qs, urlparse

import pytest

from signalist.finnhub_client import MarketDataClient, UpstreamError


def _resp(json_data, status=200, reason="OK"):
    resp = Mock()
    resp.status_code = status
    resp.reason = reason
    resp.json.return_value = json_data
    return resp


def _query(url):
    return {k: v[0] for k, v in parse_qs(urlparse(url).query).items()}


@pytest.fixture
def client():
    return MarketDataClient(api_key="test-key", base_url="https://finnhub.test/api/v1")


class TestConstruction:
    def test_missing_token_refuses_to_construct(self):
        with patch.dict("os.environ", {"FINNHUB_API_KEY": ""}):
            with patch("signalist.finnhub_client.get_settings") as gs:
                gs.return_value.finnhub_api_key = ""
                with pytest.raises(ValueError):
                    MarketDataClient()

    def test_token_from_settings(self):
        with patch("signalist.finnhub_client.get_settings") as gs:
            gs.return_value.finnhub_api_key = "from-env"
            gs.return_value.finnhub_base_url = "https://finnhub.io/api/v1"
            gs.return_value.finnhub_timeout_secs = 5.0
            c = MarketDataClient()
        assert c.api_key == "from-env"
        assert c.timeout == 5.0


class TestFetchJson:
    @pytest.mark.asyncio
    async def test_non_2xx_raises_upstream_error(self, client):
        with patch("signalist.finnhub_client.requests.get") as get:
            get.return_value = _resp({}, status=429, reason="Too Many Requests")
            with pytest.raises(UpstreamError) as exc:
                await client.fetch_json("https://finnhub.test/api/v1/news?token=x")

        assert exc.value.status == 429
        assert exc.value.reason == "Too Many Requests"
        assert "429" in str(exc.value)

    @pytest.mark.asyncio
    async def test_ttl_serves_from_cache(self, client):
        url = client.build_url("/news", {"category": "general"})
        with patch("signalist.finnhub_client.requests.get") as get:
            get.return_value = _resp([{"id": 1}])
            first = await client.fetch_json(url, 3600)
            second = await client.fetch_json(url, 3600)

        assert first == second == [{"id": 1}]
        assert get.call_count == 1

    @pytest.mark.asyncio
    async def test_no_ttl_always_fetches(self, client):
        url = client.build_url("/news", {"category": "general"})
        with patch("signalist.finnhub_client.requests.get") as get:
            get.return_value = _resp([])
            await client.fetch_json(url)
            await client.fetch_json(url)

        assert get.call_count == 2
        assert len(client.cache) == 0

    @pytest.mark.asyncio
    async def test_cache_expires(self):
        now = [0.0]
        c = MarketDataClient(api_key="k", timer=lambda: now[0])
        with patch("signalist.finnhub_client.requests.get") as get:
            get.return_value = _resp({"name": "Apple"})
            await c.fetch_json("https://x/profile", 60)
            now[0] = 61.0
            await c.fetch_json("https://x/profile", 60)

        assert get.call_count == 2

    @pytest.mark.asyncio
    async def test_each_entry_keeps_its_own_ttl(self):
        now = [0.0]
        c = MarketDataClient(api_key="k", timer=lambda: now[0])
        with patch("signalist.finnhub_client.requests.get") as get:
            get.return_value = _resp({"result": []})
            await c.fetch_json("https://x/search", 1800)
            await c.fetch_json("https://x/news", 3600)
            now[0] = 2000.0
            await c.fetch_json("https://x/search", 1800)
            await c.fetch_json("https://x/news", 3600)

        fetched = [call.args[0] for call in get.call_args_list]
        assert fetched == ["https://x/search", "https://x/news", "https://x/search"]

    @pytest.mark.asyncio
    async def test_expired_entries_are_dropped_on_write(self):
        now = [0.0]
        c = MarketDataClient(api_key="k", timer=lambda: now[0])
        with patch("signalist.finnhub_client.requests.get") as get:
            get.return_value = _resp([])
            # one new date window per day, never read again
            for day in range(50):
                await c.fetch_json(f"https://x/company-news?day={day}", 10)
                now[0] += 100

        assert len(c.cache) == 1

    @pytest.mark.asyncio
    async def test_cache_size_is_bounded(self):
        c = MarketDataClient(api_key="k", cache_size=3)
        with patch("signalist.finnhub_client.requests.get") as get:
            get.return_value = _resp([])
            for i in range(5):
                await c.fetch_json(f"https://x/news?page={i}", 3600)
            assert len(c.cache) == 3

            await c.fetch_json("https://x/news?page=0", 3600)

        assert get.call_count == 6

    @pytest.mark.asyncio
    async def test_errors_are_not_cached(self, client):
        url = client.build_url("/news", {"category": "general"})
        with patch("signalist.finnhub_client.requests.get") as get:
            get.side_effect = [_resp({}, status=500, reason="Server Error"), _resp([1])]
            with pytest.raises(UpstreamError):
                await client.fetch_json(url, 3600)
            assert await client.fetch_json(url, 3600) == [1]


class TestEndpoints:
    @pytest.mark.asyncio
    async def test_company_news_params(self, client):
        with patch("signalist.finnhub_client.requests.get") as get:
            get.return_value = _resp([{"id": 1}])
            data = await client.list_company_news("aapl", "2026-10-14", "2026-10-19")

        url = get.call_args[0][0]
        assert urlparse(url).path.endswith("/company-news")
        assert _query(url) == {
            "symbol": "AAPL",
            "from": "2026-10-14",
            "to": "2026-10-19",
            "token": "test-key",
        }
        assert data == [{"id": 1}]

    @pytest.mark.asyncio
    async def test_general_news_params(self, client):
        with patch("signalist.finnhub_client.requests.get") as get:
            get.return_value = _resp([])
            await client.list_general_news()

        url = get.call_args[0][0]
        assert urlparse(url).path.endswith("/news")
        assert _query(url)["category"] == "general"

    @pytest.mark.asyncio
    async def test_search_unwraps_result(self, client):
        with patch("signalist.finnhub_client.requests.get") as get:
            get.return_value = _resp(
                {"count": 1, "result": [{"symbol": "AAPL", "description": "APPLE INC"}]}
            )
            results = await client.search_symbols("apple")

        assert _query(get.call_args[0][0])["q"] == "apple"
        assert results == [{"symbol": "AAPL", "description": "APPLE INC"}]

    @pytest.mark.asyncio
    async def test_unexpected_shapes_degrade_to_empty(self, client):
        with patch("signalist.finnhub_client.requests.get") as get:
            get.return_value = _resp({"error": "nope"})
            assert await client.list_company_news("AAPL", "a", "b") == []
            assert await client.search_symbols("zzz") == []
            get.return_value = _resp([])
            assert await client.get_profile("ZZZ") == {}

    @pytest.mark.asyncio
    async def test_profile_symbol_upper(self, client):
        with patch("signalist.finnhub_client.requests.get") as get:
            get.return_value = _resp({"name": "Microsoft", "exchange": "NASDAQ"})
            profile = await client.get_profile("msft")

        assert _query(get.call_args[0][0])["symbol"] == "MSFT"
        assert profile["exchange"] == "NASDAQ"
