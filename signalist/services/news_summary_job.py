"""Daily news-summary pipeline and the sign-up welcome email.

    users → watchlist symbols → news → AI summary → email

News fetch and summarization walk the users one at a time; the emails go
out together at the end. A user whose news fetch or summary fails is logged
and dropped for this run; everyone else still gets their email.

Usage (from the scheduler):
    job = NewsSummaryJob()
    stats = await job.run()
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from signalist.collectors.news_collector import NewsCollector
from signalist.models.news import MarketNewsArticle
from signalist.models.user import UserForEmail
from signalist.services import email_service
from signalist.services.llm_service import LLMService
from signalist.services.prompts import news_summary_prompt, welcome_prompt
from signalist.services.user_service import get_all_users_for_email
from signalist.services.watchlist_service import WatchlistService
from signalist.utils.dates import format_date_today
from signalist.utils.logger import logger

NO_NEWS_FALLBACK = "No market news."
WELCOME_FALLBACK = (
    "Thanks for joining Signalist. You now have the tools to track markets "
    "and make smarter moves."
)


@dataclass
class UserNews:
    user: UserForEmail
    news: list[MarketNewsArticle] = field(default_factory=list)


@dataclass
class UserSummary:
    user: UserForEmail
    content: str


class NewsSummaryJob:
    """One run of the daily digest across every mailable user."""

    def __init__(
        self,
        collector: NewsCollector | None = None,
        llm: LLMService | None = None,
        watchlist: WatchlistService | None = None,
    ) -> None:
        self.collector = collector or NewsCollector()
        self.llm = llm or LLMService()
        self.watchlist = watchlist or WatchlistService()

    async def run(self) -> dict:
        users = get_all_users_for_email()
        if not users:
            logger.info("[NewsJob] No users found for news email")
            return {"success": False, "message": "No users found for news email."}

        logger.info("[NewsJob] Found %d users for daily news summary", len(users))

        news_per_user = await self.fetch_news_per_user(users)
        summaries = await self.summarize(news_per_user)
        sent = await self.send_emails(summaries)

        return {
            "success": True,
            "message": f"Daily news summary sent to {len(users)} users",
            "stats": {
                "totalUsers": len(users),
                "usersWithNews": sum(1 for n in news_per_user if n.news),
                "summariesGenerated": len(summaries),
                "emailsSent": sent,
            },
        }

    # ── Step 1: news per user ─────────────────────────────────────

    async def fetch_news_per_user(self, users: list[UserForEmail]) -> list[UserNews]:
        results: list[UserNews] = []
        for user in users:
            try:
                symbols = self.watchlist.get_symbols_by_email(user.email)
                logger.info(
                    "[NewsJob] %s has %d watchlist symbols", user.email, len(symbols)
                )
                news = await self.collector.get_news(symbols or None)
            except Exception:
                logger.exception("[NewsJob] Error fetching news for %s", user.email)
                continue

            logger.info("[NewsJob] Fetched %d articles for %s", len(news), user.email)
            results.append(UserNews(user=user, news=news))
        return results

    # ── Step 2: AI summary ────────────────────────────────────────

    async def summarize(self, news_per_user: list[UserNews]) -> list[UserSummary]:
        summaries: list[UserSummary] = []
        for item in news_per_user:
            prompt = news_summary_prompt([a.model_dump() for a in item.news])
            try:
                text = await self.llm.generate_text(prompt)
            except Exception:
                logger.exception("[NewsJob] Failed to summarize news for %s", item.user.email)
                continue
            summaries.append(
                UserSummary(user=item.user, content=text.strip() or NO_NEWS_FALLBACK)
            )
        return summaries

    # ── Step 3: emails ────────────────────────────────────────────

    @staticmethod
    async def send_emails(summaries: list[UserSummary]) -> int:
        """Send every summary concurrently. Returns the number delivered."""
        if not summaries:
            return 0

        today = format_date_today()
        results = await asyncio.gather(
            *(
                email_service.send_news_summary_email(
                    email=s.user.email, date=today, news_content=s.content
                )
                for s in summaries
            ),
            return_exceptions=True,
        )

        sent = 0
        for summary, result in zip(summaries, results):
            if isinstance(result, BaseException):
                logger.error(
                    "[NewsJob] Email to %s failed: %s", summary.user.email, result
                )
            else:
                sent += 1
        logger.info("[NewsJob] Sent %d/%d summary emails", sent, len(summaries))
        return sent


async def run_daily_news_summary() -> dict:
    return await NewsSummaryJob().run()


async def send_sign_up_email(data: dict) -> dict:
    """Handle ``app/user.created``: personalised intro, then the welcome mail.

    ``data`` carries email, name and the investment profile fields.
    """
    prompt = welcome_prompt(
        investment_goals=data.get("investmentGoals", ""),
        risk_tolerance=data.get("riskTolerance", ""),
        preferred_industry=data.get("preferredIndustry", ""),
    )
    try:
        intro = (await LLMService().generate_text(prompt)).strip()
    except Exception:
        logger.exception("[Welcome] Intro generation failed for %s", data.get("email"))
        intro = ""

    await email_service.send_welcome_email(
        email=data["email"], name=data.get("name", ""), intro=intro or WELCOME_FALLBACK,
    )
    return {"success": True, "message": "Welcome email sent successfully"}
