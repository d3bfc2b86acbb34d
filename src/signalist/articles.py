from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping, Optional, Tuple


@dataclass(frozen=True)
class Article:
    """
    Canonical news article handed to summarization and email rendering.

    Built only through :func:`format_article` from a raw Finnhub record that
    passed :func:`validate_article`.  ``datetime`` is epoch milliseconds.
    ``symbol`` is set for company news only.
    """

    id: Any
    title: str
    summary: str
    url: str
    source: str
    datetime: int
    image: str = ""
    symbol: Optional[str] = None
    related_stocks: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["related_stocks"] = list(self.related_stocks)
        if self.symbol is None:
            data.pop("symbol")
        return data


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def validate_article(raw: Mapping[str, Any]) -> bool:
    """Return True when ``raw`` has an id and non-blank headline, url and summary."""
    if not isinstance(raw, Mapping):
        return False
    if raw.get("id") is None:
        return False
    return bool(
        _text(raw.get("headline")) and _text(raw.get("url")) and _text(raw.get("summary"))
    )


def _epoch_ms(value: Any) -> int:
    try:
        return int(float(value) * 1000)
    except (TypeError, ValueError):
        return 0


def format_article(
    raw: Mapping[str, Any],
    is_company_news: bool,
    symbol: Optional[str] = None,
    index: Optional[int] = None,
) -> Article:
    """Normalize a validated raw article.

    ``index`` is the article's position in the caller's listing.  It is kept
    in the signature for display ordering and never changes the identity
    fields of the result.
    """
    related = tuple(
        part.strip().upper()
        for part in _text(raw.get("related")).split(",")
        if part.strip()
    )
    source = _text(raw.get("source")) or (
        "Company News" if is_company_news else "Market News"
    )
    return Article(
        id=raw.get("id"),
        title=_text(raw.get("headline")),
        summary=_text(raw.get("summary")),
        url=_text(raw.get("url")),
        source=source,
        datetime=_epoch_ms(raw.get("datetime")),
        image=_text(raw.get("image")),
        symbol=symbol if is_company_news else None,
        related_stocks=related,
    )
