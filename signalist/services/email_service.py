"""Email delivery over SMTP with Jinja2-rendered HTML bodies.

smtplib is blocking, so every send runs in a worker thread; callers can
``asyncio.gather`` many sends without stalling the event loop.
"""

from __future__ import annotations

import asyncio
import smtplib
from datetime import date
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr

from jinja2 import Environment, FileSystemLoader, select_autoescape

from signalist.config import settings
from signalist.errors import EmailNotConfigured
from signalist.utils.logger import logger

WELCOME_SUBJECT = "Welcome to Signalist - your stock market toolkit is ready!"
NEWS_SUMMARY_SUBJECT = "📈 Market News Summary Today - {date}"

_templates = Environment(
    loader=FileSystemLoader(str(settings.TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
)


def render_email(template: str, **context: object) -> str:
    ctx = {"app_url": settings.APP_URL.rstrip("/"), "year": date.today().year, **context}
    return _templates.get_template(f"emails/{template}").render(**ctx)


def _send_sync(to: str, subject: str, html: str) -> None:
    """Blocking SMTP send. Raises on any failure."""
    if not settings.smtp_configured:
        raise EmailNotConfigured()

    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = formataddr((settings.EMAIL_FROM_NAME, settings.EMAIL_FROM))
    msg["To"] = to
    msg.attach(MIMEText(html, "html", "utf-8"))

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=60) as server:
        if settings.SMTP_STARTTLS:
            server.starttls()
        server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        server.sendmail(settings.EMAIL_FROM, [to], msg.as_string())


async def send_email(to: str, subject: str, html: str) -> None:
    await asyncio.to_thread(_send_sync, to, subject, html)
    logger.info("[Email] Sent '%s' to %s", subject, to)


async def send_welcome_email(email: str, name: str, intro: str) -> None:
    html = render_email("welcome.html", name=name, intro=intro)
    await send_email(email, WELCOME_SUBJECT, html)


async def send_news_summary_email(email: str, date: str, news_content: str) -> None:
    html = render_email("news_summary.html", date=date, news_content=news_content)
    await send_email(email, NEWS_SUMMARY_SUBJECT.format(date=date), html)
