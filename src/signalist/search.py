"""
Instrument Search
=================

Backs the search palette.  An empty query lists popular symbols with their
company profiles; a non-empty query goes through Finnhub symbol search.

Search is best-effort: any failure yields an empty list so the caller can
show "no results" instead of an error.  Results are memoized per exact
query string, and identical concurrent queries share one upstream call.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import cachetools

from .config import get_settings
from .debounce import Debouncer
from .finnhub_client import MarketDataClient
from .logging_utils import get_logger

log = get_logger("search")

POPULAR_TYPE = "Common Stock"
DEFAULT_TYPE = "Stock"
DEFAULT_EXCHANGE = "US"


@dataclass(frozen=True)
class InstrumentSearchResult:
    symbol: str
    name: str
    exchange: str
    type: str
    is_in_watchlist: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "name": self.name,
            "exchange": self.exchange,
            "type": self.type,
            "is_in_watchlist": self.is_in_watchlist,
        }


class SearchAggregator:
    def __init__(
        self,
        client: MarketDataClient,
        cache: Optional[cachetools.TTLCache] = None,
        popular_symbols: Optional[Sequence[str]] = None,
        max_results: Optional[int] = None,
        popular_limit: Optional[int] = None,
    ):
        settings = get_settings()
        self.client = client
        self.cache = cache if cache is not None else cachetools.TTLCache(
            maxsize=512, ttl=settings.search_cache_ttl_secs
        )
        self.popular_symbols = list(popular_symbols or settings.popular_symbols)
        self.max_results = max_results or settings.search_result_limit
        self.popular_limit = popular_limit or settings.popular_result_limit
        self._inflight: Dict[str, asyncio.Future] = {}

    async def search(self, query: Optional[str] = None) -> List[InstrumentSearchResult]:
        key = query or ""
        cached = self.cache.get(key)
        if cached is not None:
            return list(cached)

        inflight = self._inflight.get(key)
        if inflight is not None:
            try:
                return list(await asyncio.shield(inflight))
            except asyncio.CancelledError:
                if not inflight.cancelled():
                    raise
                # the owning call was cancelled; run our own
                return await self.search(query)

        future = asyncio.get_running_loop().create_future()
        self._inflight[key] = future
        try:
            results = await self._search_uncached(query)
        except BaseException:
            future.cancel()
            raise
        else:
            future.set_result(results)
        finally:
            self._inflight.pop(key, None)
        return list(results)

    async def _search_uncached(self, query: Optional[str]) -> List[InstrumentSearchResult]:
        try:
            term = (query or "").strip()
            if term:
                results = await self._search_query(term)
            else:
                results = await self._popular()
            results = results[: self.max_results]
        except Exception as e:
            log.error("search_stocks_failed query=%r err=%s", query, e, exc_info=True)
            return []

        self.cache[query or ""] = tuple(results)
        log.debug("search_stocks query=%r results=%d", query, len(results))
        return results

    async def _search_query(self, term: str) -> List[InstrumentSearchResult]:
        records = await self.client.search_symbols(term)
        results: List[InstrumentSearchResult] = []
        for rec in records:
            symbol = str(rec.get("symbol") or "").strip().upper()
            if not symbol:
                continue
            results.append(
                InstrumentSearchResult(
                    symbol=symbol,
                    name=str(rec.get("description") or ""),
                    exchange=rec.get("exchange") or DEFAULT_EXCHANGE,
                    type=rec.get("type") or DEFAULT_TYPE,
                )
            )
        return results

    async def _popular(self) -> List[InstrumentSearchResult]:
        symbols = self.popular_symbols[: self.popular_limit]
        profiles = await asyncio.gather(
            *(self.client.get_profile(sym) for sym in symbols),
            return_exceptions=True,
        )
        results = []
        for sym, profile in zip(symbols, profiles):
            if isinstance(profile, BaseException):
                log.warning("profile_lookup_failed symbol=%s err=%s", sym, profile)
                profile = {}
            results.append(
                InstrumentSearchResult(
                    symbol=sym.upper(),
                    name=str(profile.get("name") or ""),
                    exchange=profile.get("exchange") or DEFAULT_EXCHANGE,
                    type=POPULAR_TYPE,
                )
            )
        return results


class SearchSession:
    """
    Debounced search-as-you-type state for one open search surface.

    ``on_input`` is called on every keystroke.  Only the term that is still
    current after ``delay`` seconds reaches the aggregator.  A blank term
    restores the initial list, trimmed to the popular limit.
    """

    def __init__(
        self,
        aggregator: SearchAggregator,
        initial: Sequence[InstrumentSearchResult] = (),
        delay: float = 0.3,
    ):
        self.aggregator = aggregator
        self.initial = list(initial)
        self.term = ""
        self.results: List[InstrumentSearchResult] = self.displayed_initial()
        self.loading = False
        self._debouncer = Debouncer(self._run, delay=delay)

    def displayed_initial(self) -> List[InstrumentSearchResult]:
        return self.initial[: self.aggregator.popular_limit]

    @property
    def is_search_mode(self) -> bool:
        return bool(self.term.strip())

    def on_input(self, term: str) -> asyncio.Task:
        self.term = term
        return self._debouncer()

    async def _run(self) -> List[InstrumentSearchResult]:
        if not self.is_search_mode:
            self.results = self.displayed_initial()
            return self.results

        self.loading = True
        try:
            self.results = await self.aggregator.search(self.term.strip())
        except Exception as e:
            log.warning("search_session_failed term=%r err=%s", self.term, e)
            self.results = []
        finally:
            self.loading = False
        return self.results

    async def settle(self) -> List[InstrumentSearchResult]:
        await self._debouncer.flush()
        return self.results

    def select(self) -> None:
        """Reset after the user picks a result."""
        self._debouncer.cancel()
        self.term = ""
        self.results = self.displayed_initial()

    def close(self) -> None:
        self._debouncer.cancel()
