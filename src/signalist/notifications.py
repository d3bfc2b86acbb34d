"""
Email Notification Pipelines
============================

Two pipelines, both triggered by events (or the daily scheduler):

``run_daily_news_summary`` (event ``app/send.daily.news``, cron ``0 12 * * *``)
    1. load every user with an email address
    2. resolve each user's watchlist and news concurrently
    3. summarize each user's news with the LLM, one user at a time
    4. send the summaries concurrently, skipping users without one

    Failures are contained per user: a broken watchlist lookup falls back
    to general news, a failed summary skips that user's email, and a failed
    send is logged.  The run reports success once dispatch settles.

``send_signup_email`` (event ``app/user.created``)
    One LLM call for a personalized intro, falling back to a stock sentence
    on any failure, then always sends the welcome email.

Re-running either pipeline is safe apart from re-sending email.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .articles import Article
from .config import get_settings
from .email_transport import EmailTransport
from .llm_prompts import NEWS_SUMMARY_EMAIL_PROMPT, PERSONALIZED_WELCOME_EMAIL_PROMPT
from .logging_utils import get_logger
from .news import NewsAggregator
from .services.llm_providers.base import BaseLLMProvider, extract_text, user_prompt_body
from .time_utils import formatted_today
from .user_store import User, UserDirectory, WatchlistStore

log = get_logger("notifications")

NO_NEWS_FALLBACK = "No Market news"
WELCOME_INTRO_FALLBACK = (
    "Thanks for joining Signalist. You now have the tools to track markets "
    "and make smarter moves."
)

EVENT_USER_CREATED = "app/user.created"
EVENT_SEND_DAILY_NEWS = "app/send.daily.news"


@dataclass
class NotificationBatchResult:
    user: User
    news_content: Optional[str]


@dataclass
class SignupEvent:
    email: str
    name: str = ""
    country: str = ""
    investment_goals: str = ""
    risk_tolerance: str = ""
    preferred_industry: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SignupEvent":
        """Accept both snake_case and the camelCase keys of the signup form."""
        email = data.get("email")
        if not email:
            raise ValueError("signup event requires an email")
        return cls(
            email=email,
            name=data.get("name") or "",
            country=data.get("country") or "",
            investment_goals=data.get("investment_goals") or data.get("investmentGoals") or "",
            risk_tolerance=data.get("risk_tolerance") or data.get("riskTolerance") or "",
            preferred_industry=(
                data.get("preferred_industry") or data.get("preferredIndustry") or ""
            ),
        )

    def profile_block(self) -> str:
        return (
            f"- Country: {self.country}\n"
            f"- Investment goals: {self.investment_goals}\n"
            f"- Risk tolerance: {self.risk_tolerance}\n"
            f"- Preferred industry: {self.preferred_industry}"
        )


@dataclass
class UserNews:
    user: User
    news: List[Article] = field(default_factory=list)


def _news_json(news: List[Article]) -> str:
    return json.dumps([a.to_dict() for a in news], indent=2, ensure_ascii=False)


class NotificationPipeline:
    def __init__(
        self,
        users: UserDirectory,
        watchlists: WatchlistStore,
        news: NewsAggregator,
        llm: BaseLLMProvider,
        mailer: EmailTransport,
        model: Optional[str] = None,
    ):
        self.users = users
        self.watchlists = watchlists
        self.news = news
        self.llm = llm
        self.mailer = mailer
        self.model = model or get_settings().gemini_model

    # ------------------------------------------------------------------
    # Daily news summary
    # ------------------------------------------------------------------

    async def run_daily_news_summary(self) -> Dict[str, Any]:
        # Step 1: recipients
        users = await self.users.list_users_with_email()
        if not users:
            log.info("daily_news_no_users")
            return {"success": False, "message": "No users found for news email"}

        log.info("daily_news_start users=%d", len(users))

        # Step 2: per-user news, concurrently
        users_with_news = await asyncio.gather(
            *(self._resolve_user_news(user) for user in users)
        )

        # Step 3: summaries, sequentially
        summaries: List[NotificationBatchResult] = []
        for item in users_with_news:
            content = await self._summarize(item)
            summaries.append(NotificationBatchResult(user=item.user, news_content=content))

        # Step 4: dispatch
        sent, failed, skipped = await self._dispatch(summaries)
        log.info(
            "daily_news_complete users=%d sent=%d failed=%d skipped=%d",
            len(users),
            sent,
            failed,
            skipped,
        )
        return {
            "success": True,
            "message": "Daily news summary emails sent successfully",
        }

    async def _resolve_user_news(self, user: User) -> UserNews:
        try:
            symbols = await self.watchlists.symbols_for_email(user.email)
        except Exception as e:
            log.warning("watchlist_resolve_failed email=%s err=%s", user.email, e)
            symbols = []

        try:
            news = await self.news.get_news(symbols)
        except Exception as e:
            log.warning("news_resolve_failed email=%s err=%s", user.email, e)
            news = []

        return UserNews(user=user, news=news)

    async def _summarize(self, item: UserNews) -> Optional[str]:
        prompt = NEWS_SUMMARY_EMAIL_PROMPT.replace("{{newsData}}", _news_json(item.news))
        try:
            response = await self.llm.infer(self.model, user_prompt_body(prompt))
        except Exception as e:
            log.error("news_summary_failed email=%s err=%s", item.user.email, e)
            return None

        try:
            text = extract_text(response)
        except Exception as e:
            log.warning("news_summary_unreadable email=%s err=%s", item.user.email, e)
            text = None
        return text or NO_NEWS_FALLBACK

    async def _dispatch(self, summaries: List[NotificationBatchResult]):
        to_send = [s for s in summaries if s.news_content]
        skipped = len(summaries) - len(to_send)
        today = formatted_today()

        outcomes = await asyncio.gather(
            *(
                self.mailer.send_news_summary_email(
                    email=s.user.email, date=today, news_content=s.news_content
                )
                for s in to_send
            ),
            return_exceptions=True,
        )

        sent = failed = 0
        for s, outcome in zip(to_send, outcomes):
            if isinstance(outcome, BaseException):
                failed += 1
                log.warning("news_email_failed email=%s err=%s", s.user.email, outcome)
            else:
                sent += 1
        return sent, failed, skipped

    # ------------------------------------------------------------------
    # Welcome email
    # ------------------------------------------------------------------

    async def send_signup_email(self, event: SignupEvent) -> Dict[str, Any]:
        prompt = PERSONALIZED_WELCOME_EMAIL_PROMPT.replace(
            "{{userProfile}}", event.profile_block()
        )

        intro = None
        try:
            response = await self.llm.infer(self.model, user_prompt_body(prompt))
            intro = extract_text(response)
        except Exception as e:
            log.warning("welcome_intro_failed email=%s err=%s", event.email, e)

        await self.mailer.send_welcome_email(
            email=event.email, name=event.name, intro=intro or WELCOME_INTRO_FALLBACK
        )
        log.info("welcome_email_sent email=%s personalized=%s", event.email, bool(intro))
        return {"success": True, "message": "Welcome email sent successfully"}

    # ------------------------------------------------------------------
    # Event routing
    # ------------------------------------------------------------------

    async def handle_event(
        self, name: str, data: Optional[Mapping[str, Any]] = None
    ) -> Dict[str, Any]:
        if name == EVENT_USER_CREATED:
            return await self.send_signup_email(SignupEvent.from_dict(data or {}))
        if name == EVENT_SEND_DAILY_NEWS:
            return await self.run_daily_news_summary()
        raise ValueError(f"Unknown event: {name}")
