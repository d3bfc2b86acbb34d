"""Finnhub API client for symbol search, company profiles and news.

Endpoints consumed:
- ``/search`` (free-text instrument search)
- ``/stock/profile2`` (company profile)
- ``/company-news`` (per-symbol news over a date window)
- ``/news?category=general`` (general market news)

Responses can be cached per URL with a TTL.  The client never retries;
callers decide how to degrade.

API Documentation: https://finnhub.io/docs/api
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import urlencode

import cachetools
import requests

from .config import get_settings
from .logging_utils import get_logger

log = get_logger("finnhub_client")

SEARCH_TTL_SECS = 1800
NEWS_TTL_SECS = 3600
PROFILE_TTL_SECS = 3600
RESPONSE_CACHE_SIZE = 1024


def _entry_expiry(_url: str, entry: Tuple[float, Any], now: float) -> float:
    # entries are (ttl_seconds, body) pairs
    return now + entry[0]


class UpstreamError(Exception):
    """Finnhub answered with a non-2xx status."""

    def __init__(self, status: int, reason: str = ""):
        self.status = status
        self.reason = reason or ""
        super().__init__(f"Finnhub API error: {status} {self.reason}".rstrip())


class MarketDataClient:
    """Async wrapper around the Finnhub REST endpoints with response caching."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        cache_size: int = RESPONSE_CACHE_SIZE,
        timer: Callable[[], float] = time.monotonic,
        session: Optional[requests.Session] = None,
    ):
        """Initialize Finnhub client.

        Parameters
        ----------
        api_key : str
            Finnhub API token (default: ``FINNHUB_API_KEY`` via settings)
        base_url : str
            API root (default: ``https://finnhub.io/api/v1``)
        timeout : float
            Per-request network timeout in seconds
        cache_size : int
            Maximum number of cached responses (least recently used go first)
        timer : callable
            Monotonic clock used for cache expiry
        session : requests.Session
            Optional session for connection reuse
        """
        settings = get_settings()
        self.api_key = api_key or settings.finnhub_api_key
        if not self.api_key:
            raise ValueError("Finnhub API key required (set FINNHUB_API_KEY env var)")

        self.base_url = (base_url or settings.finnhub_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.finnhub_timeout_secs
        # Per-entry TTL: each endpoint caches for its own duration
        self.cache = cachetools.TLRUCache(
            maxsize=cache_size, ttu=_entry_expiry, timer=timer
        )
        self._http = session or requests

    def build_url(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> str:
        query = dict(params or {})
        query["token"] = self.api_key
        return f"{self.base_url}{endpoint}?{urlencode(query)}"

    def _get(self, url: str) -> Any:
        resp = self._http.get(url, timeout=self.timeout)
        if not 200 <= resp.status_code < 300:
            raise UpstreamError(resp.status_code, getattr(resp, "reason", "") or "")
        return resp.json()

    async def fetch_json(self, url: str, cache_ttl_seconds: Optional[int] = None) -> Any:
        """GET ``url`` and decode JSON.

        With ``cache_ttl_seconds`` a cached body younger than the TTL is
        returned instead of hitting the network.  Without it the request is
        always fresh and nothing is cached.

        Raises
        ------
        UpstreamError
            When the HTTP status is outside 2xx.
        """
        if cache_ttl_seconds:
            entry = self.cache.get(url)
            if entry is not None:
                log.debug("finnhub_cache_hit url=%s", self._redact(url))
                return entry[1]

        log.debug("finnhub_request url=%s", self._redact(url))
        data = await asyncio.to_thread(self._get, url)

        if cache_ttl_seconds:
            self.cache[url] = (cache_ttl_seconds, data)
        return data

    def _redact(self, url: str) -> str:
        return url.replace(self.api_key, "***")

    # -------------------------------------------------------------------------
    # Search & profiles
    # -------------------------------------------------------------------------

    async def search_symbols(self, query: str) -> List[Dict[str, Any]]:
        """Free-text instrument search.

        Returns
        -------
        list of dict
            Records with keys: description, displaySymbol, symbol, type
        """
        url = self.build_url("/search", {"q": query})
        data = await self.fetch_json(url, SEARCH_TTL_SECS)
        if isinstance(data, dict) and isinstance(data.get("result"), list):
            return data["result"]
        return []

    async def get_profile(self, symbol: str) -> Dict[str, Any]:
        """Company profile (``name``, ``exchange``, ``ticker``, ...)."""
        url = self.build_url("/stock/profile2", {"symbol": symbol.upper()})
        data = await self.fetch_json(url, PROFILE_TTL_SECS)
        return data if isinstance(data, dict) else {}

    # -------------------------------------------------------------------------
    # News
    # -------------------------------------------------------------------------

    async def list_company_news(
        self, symbol: str, from_date: str, to_date: str
    ) -> List[Dict[str, Any]]:
        """Company news between two ``YYYY-MM-DD`` dates, provider order."""
        url = self.build_url(
            "/company-news",
            {"symbol": symbol.upper(), "from": from_date, "to": to_date},
        )
        data = await self.fetch_json(url, NEWS_TTL_SECS)
        return data if isinstance(data, list) else []

    async def list_general_news(self) -> List[Dict[str, Any]]:
        url = self.build_url("/news", {"category": "general"})
        data = await self.fetch_json(url, NEWS_TTL_SECS)
        return data if isinstance(data, list) else []
