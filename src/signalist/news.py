"""
News Aggregation
================

Builds the short article lists used by the daily summary email and the
news widgets.

Company news (``get_news(symbols)``) runs a fixed number of rounds over the
symbols round-robin.  Each round fetches the symbol's news for the last few
days and keeps the first valid article whose URL has not been used yet, so
a short watchlist still fills every slot and a long one gets one article
per symbol.  Rounds run one after another because they share the seen-URL
set.

General news (``get_general_news()``) takes the first unique valid entries
of the general feed.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Set

from .articles import Article, format_article, validate_article
from .config import get_settings
from .finnhub_client import MarketDataClient
from .logging_utils import get_logger
from .time_utils import date_range

log = get_logger("news")


class NewsFetchError(Exception):
    """Unexpected failure outside the per-round guards."""


def normalize_symbols(symbols: Optional[Iterable[str]]) -> List[str]:
    if not symbols:
        return []
    return [s.strip().upper() for s in symbols if s and s.strip()]


class NewsAggregator:
    def __init__(
        self,
        client: MarketDataClient,
        rounds: Optional[int] = None,
        lookback_days: Optional[int] = None,
        general_limit: Optional[int] = None,
    ):
        settings = get_settings()
        self.client = client
        self.rounds = rounds or settings.news_rounds
        self.lookback_days = lookback_days or settings.news_lookback_days
        self.general_limit = general_limit or settings.general_news_limit

    async def get_news(self, symbols: Optional[Iterable[str]] = None) -> List[Article]:
        try:
            clean = normalize_symbols(symbols)
            if not clean:
                return await self.get_general_news()

            from_date, to_date = date_range(self.lookback_days)
            articles = await self._company_rounds(clean, from_date, to_date)
            return sorted(articles, key=lambda a: a.datetime, reverse=True)
        except Exception as e:
            log.error("get_news_failed symbols=%s err=%s", symbols, e, exc_info=True)
            raise NewsFetchError("Failed to fetch news") from e

    async def _company_rounds(
        self, symbols: List[str], from_date: str, to_date: str
    ) -> List[Article]:
        articles: List[Article] = []
        seen_urls: Set[str] = set()

        for i in range(self.rounds):
            symbol = symbols[i % len(symbols)]
            try:
                raw_articles = await self.client.list_company_news(
                    symbol, from_date, to_date
                )
            except Exception as e:
                log.warning("company_news_failed symbol=%s round=%d err=%s", symbol, i, e)
                continue

            for raw in raw_articles:
                if not validate_article(raw):
                    continue
                article = format_article(raw, True, symbol, i)
                if article.url in seen_urls:
                    continue
                articles.append(article)
                seen_urls.add(article.url)
                # one article per round
                break

        log.info(
            "company_news_collected symbols=%d rounds=%d articles=%d",
            len(symbols),
            self.rounds,
            len(articles),
        )
        return articles

    async def get_general_news(self) -> List[Article]:
        raw_articles = await self.client.list_general_news()

        unique = {}
        for raw in raw_articles:
            if not validate_article(raw):
                continue
            key = f"{raw.get('id')}-{raw.get('url')}-{raw.get('headline')}"
            if key not in unique:
                unique[key] = raw

        selected = list(unique.values())[: self.general_limit]
        return [format_article(raw, False, None, idx) for idx, raw in enumerate(selected)]
