"""CLI entry point for Signalist.

Run the pipelines and lookups from the command line:

.. code-block:: bash

    # Search (empty query lists popular stocks)
    signalist search apple

    # News for a watchlist, or general news without symbols
    signalist news aapl msft

    # Daily summary email: once, or on the daily schedule
    signalist daily-news
    signalist schedule

    # Welcome email for a new user
    signalist welcome --email jane@example.com --name Jane --country US

Results are printed as JSON on stdout; logs go to stderr and ``data/logs``.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from typing import Any

from dotenv import load_dotenv

from .config import reload_settings
from .logging_utils import get_logger, setup_logging

log = get_logger("cli")


def _print_json(data: Any) -> None:
    json.dump(data, sys.stdout, indent=2, ensure_ascii=False, default=str)
    sys.stdout.write("\n")


def _market_client():
    from .finnhub_client import MarketDataClient

    return MarketDataClient()


def build_pipeline():
    """Wire the production collaborators together."""
    from .email_transport import SMTPEmailTransport
    from .news import NewsAggregator
    from .notifications import NotificationPipeline
    from .services.llm_providers import GeminiProvider
    from .user_store import SQLiteUserStore

    store = SQLiteUserStore()
    return NotificationPipeline(
        users=store,
        watchlists=store,
        news=NewsAggregator(_market_client()),
        llm=GeminiProvider(),
        mailer=SMTPEmailTransport(),
    )


async def _cmd_search(args: argparse.Namespace) -> Any:
    from .search import SearchAggregator

    results = await SearchAggregator(_market_client()).search(args.query)
    return [r.to_dict() for r in results]


async def _cmd_news(args: argparse.Namespace) -> Any:
    from .news import NewsAggregator

    articles = await NewsAggregator(_market_client()).get_news(args.symbols)
    return [a.to_dict() for a in articles]


async def _cmd_daily_news(args: argparse.Namespace) -> Any:
    return await build_pipeline().run_daily_news_summary()


async def _cmd_schedule(args: argparse.Namespace) -> Any:
    from .scheduler import DailySchedule, run_scheduler

    pipeline = build_pipeline()
    schedule = DailySchedule.from_settings()
    if args.hour is not None or args.minute is not None:
        schedule = DailySchedule(
            hour=schedule.hour if args.hour is None else args.hour,
            minute=schedule.minute if args.minute is None else args.minute,
        )
    runs = await run_scheduler(
        pipeline.run_daily_news_summary, schedule, max_runs=args.max_runs
    )
    return {"runs": runs}


async def _cmd_welcome(args: argparse.Namespace) -> Any:
    from .notifications import EVENT_USER_CREATED

    data = {
        "email": args.email,
        "name": args.name,
        "country": args.country,
        "investment_goals": args.investment_goals,
        "risk_tolerance": args.risk_tolerance,
        "preferred_industry": args.preferred_industry,
    }
    return await build_pipeline().handle_event(EVENT_USER_CREATED, data)


async def _cmd_add_user(args: argparse.Namespace) -> Any:
    from .user_store import SQLiteUserStore

    user = SQLiteUserStore().add_user(args.email, name=args.name)
    return {"id": user.id, "email": user.email, "name": user.name}


async def _cmd_watch(args: argparse.Namespace) -> Any:
    from .user_store import SQLiteUserStore

    store = SQLiteUserStore()
    user = store.find_user_by_email(args.email)
    if user is None:
        raise SystemExit(f"unknown user: {args.email}")
    added = [s.upper() for s in args.symbols if store.add_symbol(user.id, s)]
    return {"email": user.email, "added": added}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="signalist",
        description="Signalist market news tools: search, news and email pipelines.",
    )
    parser.add_argument("--log-level", default="INFO", help="Logging level (default INFO)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    p = subparsers.add_parser("search", help="Search stocks (no query = popular stocks)")
    p.add_argument("query", nargs="?", default=None)
    p.set_defaults(func=_cmd_search)

    p = subparsers.add_parser("news", help="News for symbols (none = general news)")
    p.add_argument("symbols", nargs="*")
    p.set_defaults(func=_cmd_news)

    p = subparsers.add_parser("daily-news", help="Run the daily news summary once")
    p.set_defaults(func=_cmd_daily_news)

    p = subparsers.add_parser("schedule", help="Run the daily news summary on schedule")
    p.add_argument("--hour", type=int, default=None, help="UTC hour (default 12)")
    p.add_argument("--minute", type=int, default=None, help="UTC minute (default 0)")
    p.add_argument("--max-runs", type=int, default=None, help="Stop after N runs")
    p.set_defaults(func=_cmd_schedule)

    p = subparsers.add_parser("welcome", help="Send the welcome email for a new user")
    p.add_argument("--email", required=True)
    p.add_argument("--name", default="")
    p.add_argument("--country", default="")
    p.add_argument("--investment-goals", default="")
    p.add_argument("--risk-tolerance", default="")
    p.add_argument("--preferred-industry", default="")
    p.set_defaults(func=_cmd_welcome)

    p = subparsers.add_parser("add-user", help="Register a user in the local store")
    p.add_argument("email")
    p.add_argument("--name", default="")
    p.set_defaults(func=_cmd_add_user)

    p = subparsers.add_parser("watch", help="Add symbols to a user's watchlist")
    p.add_argument("email")
    p.add_argument("symbols", nargs="+")
    p.set_defaults(func=_cmd_watch)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Parse command line arguments and run the selected command.

    Parameters
    ----------
    argv : list[str] | None, optional
        Optional argument vector to parse instead of :data:`sys.argv`.
    """
    # If DOTENV_FILE is set, load that; otherwise default to .env
    env_file = os.getenv("DOTENV_FILE")
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()
    reload_settings()

    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    result = asyncio.run(args.func(args))
    _print_json(result)


if __name__ == "__main__":
    main()
