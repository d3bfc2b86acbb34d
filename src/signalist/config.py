import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List


def _b(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).strip().lower() in {
        "1",
        "true",
        "yes",
        "y",
        "on",
    }


def _i(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _f(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


# Reference list used when the search box is empty.  Only the first ten
# are shown; the rest are kept so the list can be reordered without code
# changes elsewhere.
POPULAR_STOCK_SYMBOLS: List[str] = [
    "AAPL",
    "MSFT",
    "GOOGL",
    "AMZN",
    "TSLA",
    "META",
    "NVDA",
    "NFLX",
    "ORCL",
    "CRM",
    "ADBE",
    "INTC",
    "AMD",
    "PYPL",
    "UBER",
    "SHOP",
    "SPOT",
    "COIN",
    "PLTR",
    "SNOW",
]


@dataclass
class Settings:
    # --- Finnhub market data ---
    # Token is read here but only enforced when a MarketDataClient is
    # constructed, so commands that never touch Finnhub still work.
    finnhub_api_key: str = field(
        default_factory=lambda: os.getenv("FINNHUB_API_KEY", "")
    )
    finnhub_base_url: str = field(
        default_factory=lambda: os.getenv(
            "FINNHUB_BASE_URL", "https://finnhub.io/api/v1"
        )
    )
    finnhub_timeout_secs: float = field(
        default_factory=lambda: _f("FINNHUB_TIMEOUT_SECS", 10.0)
    )

    # --- Gemini summarization ---
    gemini_api_key: str = field(default_factory=lambda: os.getenv("GEMINI_API_KEY", ""))
    gemini_model: str = field(
        default_factory=lambda: os.getenv("GEMINI_MODEL", "gemini-2.5-flash-lite")
    )

    # --- News aggregation ---
    news_lookback_days: int = field(default_factory=lambda: _i("NEWS_LOOKBACK_DAYS", 5))
    news_rounds: int = field(default_factory=lambda: _i("NEWS_ROUNDS", 6))
    general_news_limit: int = field(
        default_factory=lambda: _i("GENERAL_NEWS_LIMIT", 6)
    )

    # --- Search ---
    search_result_limit: int = field(
        default_factory=lambda: _i("SEARCH_RESULT_LIMIT", 15)
    )
    popular_result_limit: int = 10
    search_cache_ttl_secs: int = field(
        default_factory=lambda: _i("SEARCH_CACHE_TTL_SECS", 1800)
    )
    popular_symbols: List[str] = field(
        default_factory=lambda: list(POPULAR_STOCK_SYMBOLS)
    )

    # --- Storage ---
    data_dir: Path = field(
        default_factory=lambda: Path(os.getenv("DATA_DIR", "data")).resolve()
    )
    db_path: str = field(
        default_factory=lambda: os.getenv("SIGNALIST_DB_PATH", "data/signalist.db")
    )

    # --- Email (SMTP) ---
    smtp_host: str = field(default_factory=lambda: os.getenv("SMTP_HOST", ""))
    smtp_port: int = field(default_factory=lambda: _i("SMTP_PORT", 587))
    smtp_user: str = field(default_factory=lambda: os.getenv("SMTP_USER", ""))
    smtp_password: str = field(default_factory=lambda: os.getenv("SMTP_PASSWORD", ""))
    smtp_use_tls: bool = field(default_factory=lambda: _b("SMTP_USE_TLS", True))
    mail_from: str = field(
        default_factory=lambda: os.getenv("MAIL_FROM", "Signalist <news@signalist.app>")
    )

    # --- Daily schedule (UTC, cron "0 12 * * *") ---
    daily_news_utc_hour: int = field(
        default_factory=lambda: _i("DAILY_NEWS_UTC_HOUR", 12)
    )
    daily_news_utc_minute: int = field(
        default_factory=lambda: _i("DAILY_NEWS_UTC_MINUTE", 0)
    )

    # --- Logging ---
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", ""))
    log_plain: bool = field(default_factory=lambda: _b("LOG_PLAIN", False))
    log_rotation_days: int = field(default_factory=lambda: _i("LOG_ROTATION_DAYS", 7))


SETTINGS = Settings()


def get_settings() -> Settings:
    return SETTINGS


def reload_settings() -> Settings:
    """Re-read the environment (used after ``load_dotenv`` in the CLI)."""
    global SETTINGS
    SETTINGS = Settings()
    return SETTINGS
