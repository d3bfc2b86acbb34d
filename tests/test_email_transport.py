import smtplib
from unittest.mock import MagicMock, patch

import pytest

from signalist.email_transport import (
    NEWS_SUBJECT_TEMPLATE,
    WELCOME_SUBJECT,
    EmailTransport,
    SMTPEmailTransport,
    render_news_summary_email,
    render_welcome_email,
)


@pytest.fixture
def transport():
    return SMTPEmailTransport(
        host="smtp.example.com",
        port=2525,
        user="mailer",
        password="secret",
        sender="Signalist <news@example.com>",
        use_tls=True,
    )


@pytest.fixture
def smtp():
    with patch("signalist.email_transport.smtplib.SMTP") as smtp_cls:
        conn = MagicMock()
        smtp_cls.return_value.__enter__.return_value = conn
        yield smtp_cls, conn


def test_implements_protocol(transport):
    assert isinstance(transport, EmailTransport)


def test_welcome_render_escapes_text():
    body = render_welcome_email("<b>Ann</b>", "Hi & welcome")
    assert "&lt;b&gt;Ann&lt;/b&gt;" in body
    assert "Hi &amp; welcome" in body


def test_welcome_render_without_name():
    assert "Welcome aboard, there" in render_welcome_email("", "intro")


def test_news_render_keeps_html_fragment():
    body = render_news_summary_email("Monday, October 19, 2026", "<h3>Market</h3>")
    assert "<h3>Market</h3>" in body
    assert "Monday, October 19, 2026" in body


@pytest.mark.asyncio
async def test_send_news_summary(transport, smtp):
    smtp_cls, conn = smtp

    ok = await transport.send_news_summary_email(
        email="ann@example.com", date="Monday, October 19, 2026", news_content="<p>x</p>"
    )

    assert ok is True
    smtp_cls.assert_called_once_with("smtp.example.com", 2525, timeout=30.0)
    conn.starttls.assert_called_once()
    conn.login.assert_called_once_with("mailer", "secret")
    message = conn.send_message.call_args.args[0]
    assert message["To"] == "ann@example.com"
    assert message["Subject"] == NEWS_SUBJECT_TEMPLATE.format(date="Monday, October 19, 2026")
    html_part = message.get_body(preferencelist=("html",))
    assert "<p>x</p>" in html_part.get_content()


@pytest.mark.asyncio
async def test_send_welcome_without_auth_or_tls(smtp):
    _, conn = smtp
    transport = SMTPEmailTransport(host="localhost", port=25, user="", use_tls=False)

    await transport.send_welcome_email(email="n@example.com", name="Nia", intro="Hello")

    conn.starttls.assert_not_called()
    conn.login.assert_not_called()
    assert conn.send_message.call_args.args[0]["Subject"] == WELCOME_SUBJECT


@pytest.mark.asyncio
async def test_smtp_error_raises_runtime_error(transport, smtp):
    _, conn = smtp
    conn.send_message.side_effect = smtplib.SMTPRecipientsRefused({})

    with pytest.raises(RuntimeError, match="ann@example.com"):
        await transport.send("ann@example.com", "s", "<p>b</p>")


@pytest.mark.asyncio
async def test_missing_host_raises():
    transport = SMTPEmailTransport(host="", port=25)
    transport.host = ""
    with pytest.raises(RuntimeError, match="SMTP_HOST"):
        await transport.send("ann@example.com", "s", "<p>b</p>")
