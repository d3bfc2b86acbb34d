"""
Email delivery for the welcome and daily news emails.

The pipelines only need the :class:`EmailTransport` protocol.  The SMTP
implementation wraps the AI-written content in a minimal HTML shell and
delivers it with ``smtplib``; the blocking send runs in a worker thread.
"""

from __future__ import annotations

import asyncio
import html
import smtplib
from email.message import EmailMessage
from email.utils import formatdate
from typing import Optional, Protocol, runtime_checkable

from .config import get_settings
from .logging_utils import get_logger

log = get_logger("email_transport")

WELCOME_SUBJECT = "Welcome to Signalist - your stock market toolkit is ready!"
NEWS_SUBJECT_TEMPLATE = "Market News Summary Today - {date}"

_WELCOME_HTML = """<!DOCTYPE html>
<html><body style="font-family:Arial,sans-serif;color:#1f2937">
<h2>Welcome aboard, {name}</h2>
<p>{intro}</p>
<p>Add stocks to your watchlist and we'll send you a daily summary of the news that moves them.</p>
<p style="color:#6b7280;font-size:12px">Signalist</p>
</body></html>"""

_NEWS_HTML = """<!DOCTYPE html>
<html><body style="font-family:Arial,sans-serif;color:#1f2937">
<h2>Market News Summary</h2>
<p style="color:#6b7280">{date}</p>
{news_content}
<p style="color:#6b7280;font-size:12px">You are receiving this because you signed up for Signalist.</p>
</body></html>"""


@runtime_checkable
class EmailTransport(Protocol):
    async def send_welcome_email(self, email: str, name: str, intro: str) -> bool: ...

    async def send_news_summary_email(
        self, email: str, date: str, news_content: str
    ) -> bool: ...


def render_welcome_email(name: str, intro: str) -> str:
    return _WELCOME_HTML.format(
        name=html.escape(name or "there"), intro=html.escape(intro)
    )


def render_news_summary_email(date: str, news_content: str) -> str:
    # news_content is already an HTML fragment produced by the summarizer
    return _NEWS_HTML.format(date=html.escape(date), news_content=news_content)


class SMTPEmailTransport:
    """Send mail through an SMTP relay configured via settings."""

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        sender: Optional[str] = None,
        use_tls: Optional[bool] = None,
        timeout: float = 30.0,
    ):
        settings = get_settings()
        self.host = host or settings.smtp_host
        self.port = port or settings.smtp_port
        self.user = user if user is not None else settings.smtp_user
        self.password = password if password is not None else settings.smtp_password
        self.sender = sender or settings.mail_from
        self.use_tls = settings.smtp_use_tls if use_tls is None else use_tls
        self.timeout = timeout

    def _build_message(self, to: str, subject: str, html_body: str) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.sender
        message["To"] = to
        message["Date"] = formatdate(localtime=False)
        message.set_content("This email requires an HTML-capable mail client.")
        message.add_alternative(html_body, subtype="html")
        return message

    def _deliver(self, message: EmailMessage) -> None:
        if not self.host:
            raise RuntimeError("SMTP_HOST is not configured")
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.user:
                smtp.login(self.user, self.password)
            smtp.send_message(message)

    async def send(self, to: str, subject: str, html_body: str) -> bool:
        message = self._build_message(to, subject, html_body)
        try:
            await asyncio.to_thread(self._deliver, message)
        except smtplib.SMTPException as e:
            raise RuntimeError(f"Failed to send email to {to}: {e}") from e
        log.info("email_sent to=%s subject=%r", to, subject)
        return True

    async def send_welcome_email(self, email: str, name: str, intro: str) -> bool:
        return await self.send(email, WELCOME_SUBJECT, render_welcome_email(name, intro))

    async def send_news_summary_email(
        self, email: str, date: str, news_content: str
    ) -> bool:
        return await self.send(
            email,
            NEWS_SUBJECT_TEMPLATE.format(date=date),
            render_news_summary_email(date, news_content),
        )
