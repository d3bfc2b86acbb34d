from datetime import datetime, timezone
from unittest.mock import AsyncMock, Mock

import pytest

from signalist import time_utils

FIXED_NOW = datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _pin_clock():
    """Pin "today" so date windows and email dates are deterministic."""
    time_utils.set_clock(lambda: FIXED_NOW)
    yield
    time_utils.set_clock(None)


@pytest.fixture
def make_raw():
    """Factory for provider-shaped raw articles."""

    def _make(n=1, **overrides):
        raw = {
            "id": n,
            "headline": f"Headline {n}",
            "summary": f"Summary {n}",
            "url": f"https://news.example.com/{n}",
            "source": "Reuters",
            "datetime": 1_760_000_000 + n,
            "image": f"https://img.example.com/{n}.png",
            "category": "company",
            "related": "AAPL",
        }
        raw.update(overrides)
        return raw

    return _make


@pytest.fixture
def market_client():
    """MarketDataClient double with async endpoint methods."""
    client = Mock()
    client.search_symbols = AsyncMock(return_value=[])
    client.get_profile = AsyncMock(return_value={})
    client.list_company_news = AsyncMock(return_value=[])
    client.list_general_news = AsyncMock(return_value=[])
    return client
