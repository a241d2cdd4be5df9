"""Tests for the daily news-summary pipeline and the welcome email.

The collector, LLM and email sender are mocked; users and watchlists live in
the temporary DuckDB.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

from signalist.errors import NewsFetchError
from signalist.models.news import MarketNewsArticle
from signalist.models.user import SignUpRequest
from signalist.services.auth_service import AuthService
from signalist.services.news_summary_job import (
    NO_NEWS_FALLBACK,
    WELCOME_FALLBACK,
    NewsSummaryJob,
    send_sign_up_email,
)
from signalist.services.watchlist_service import WatchlistService


def _user(email: str, name: str = "User") -> str:
    user, _ = AuthService().sign_up(
        SignUpRequest(email=email, password="long-enough-pw", name=name)
    )
    return user.id


def _article(i: int) -> MarketNewsArticle:
    return MarketNewsArticle(
        id=i, headline=f"H{i}", summary="S", url=f"https://x/{i}", datetime=1_700_000_000 + i
    )


def _job(collector: MagicMock, llm: MagicMock) -> NewsSummaryJob:
    return NewsSummaryJob(collector=collector, llm=llm, watchlist=WatchlistService())


class TestNewsSummaryJob:

    def test_no_users(self) -> None:
        result = asyncio.run(_job(MagicMock(), MagicMock()).run())
        assert result == {"success": False, "message": "No users found for news email."}

    @patch("signalist.services.news_summary_job.email_service.send_news_summary_email",
           new_callable=AsyncMock)
    def test_watchlist_symbols_drive_news(self, send: AsyncMock) -> None:
        uid = _user("ada@example.com")
        WatchlistService().add_item(uid, "aapl", "Apple")
        _user("bob@example.com")  # empty watchlist

        collector = MagicMock()
        collector.get_news = AsyncMock(return_value=[_article(1)])
        llm = MagicMock()
        llm.generate_text = AsyncMock(return_value="<p>summary</p>")

        result = asyncio.run(_job(collector, llm).run())

        calls = [c.args[0] for c in collector.get_news.call_args_list]
        assert calls == [["AAPL"], None]
        assert result["success"] is True
        assert result["message"] == "Daily news summary sent to 2 users"
        assert result["stats"] == {
            "totalUsers": 2,
            "usersWithNews": 2,
            "summariesGenerated": 2,
            "emailsSent": 2,
        }
        sent_to = sorted(c.kwargs["email"] for c in send.call_args_list)
        assert sent_to == ["ada@example.com", "bob@example.com"]
        assert send.call_args_list[0].kwargs["news_content"] == "<p>summary</p>"

    @patch("signalist.services.news_summary_job.email_service.send_news_summary_email",
           new_callable=AsyncMock)
    def test_news_failure_skips_only_that_user(self, send: AsyncMock) -> None:
        _user("bad@example.com")
        _user("good@example.com")

        def get_news(symbols):
            if collector.get_news.await_count == 1:
                raise NewsFetchError("finnhub down")
            return [_article(1)]

        collector = MagicMock()
        collector.get_news = AsyncMock(side_effect=get_news)
        llm = MagicMock()
        llm.generate_text = AsyncMock(return_value="digest")

        result = asyncio.run(_job(collector, llm).run())

        assert result["success"] is True
        assert result["stats"]["totalUsers"] == 2
        assert result["stats"]["summariesGenerated"] == 1
        assert [c.kwargs["email"] for c in send.call_args_list] == ["good@example.com"]

    @patch("signalist.services.news_summary_job.email_service.send_news_summary_email",
           new_callable=AsyncMock)
    def test_summary_failure_skips_only_that_user(self, send: AsyncMock) -> None:
        _user("one@example.com")
        _user("two@example.com")

        collector = MagicMock()
        collector.get_news = AsyncMock(return_value=[_article(1)])
        llm = MagicMock()
        llm.generate_text = AsyncMock(side_effect=[RuntimeError("quota"), "ok"])

        result = asyncio.run(_job(collector, llm).run())

        assert result["stats"]["summariesGenerated"] == 1
        assert result["stats"]["emailsSent"] == 1
        assert [c.kwargs["email"] for c in send.call_args_list] == ["two@example.com"]

    @patch("signalist.services.news_summary_job.email_service.send_news_summary_email",
           new_callable=AsyncMock)
    def test_empty_model_output_uses_fallback(self, send: AsyncMock) -> None:
        _user("ada@example.com")
        collector = MagicMock()
        collector.get_news = AsyncMock(return_value=[])
        llm = MagicMock()
        llm.generate_text = AsyncMock(return_value="   ")

        result = asyncio.run(_job(collector, llm).run())

        assert send.call_args.kwargs["news_content"] == NO_NEWS_FALLBACK
        assert result["stats"]["usersWithNews"] == 0

    @patch("signalist.services.news_summary_job.email_service.send_news_summary_email",
           new_callable=AsyncMock)
    def test_email_failure_is_counted_not_raised(self, send: AsyncMock) -> None:
        _user("one@example.com")
        _user("two@example.com")
        send.side_effect = [OSError("smtp down"), None]

        collector = MagicMock()
        collector.get_news = AsyncMock(return_value=[_article(1)])
        llm = MagicMock()
        llm.generate_text = AsyncMock(return_value="digest")

        result = asyncio.run(_job(collector, llm).run())
        assert result["stats"]["emailsSent"] == 1

    def test_prompt_contains_news_json(self) -> None:
        _user("ada@example.com")
        collector = MagicMock()
        collector.get_news = AsyncMock(return_value=[_article(42)])
        llm = MagicMock()
        llm.generate_text = AsyncMock(return_value="digest")

        with patch("signalist.services.news_summary_job.email_service."
                   "send_news_summary_email", new_callable=AsyncMock):
            asyncio.run(_job(collector, llm).run())

        prompt = llm.generate_text.call_args.args[0]
        assert '"headline": "H42"' in prompt
        assert "{{newsData}}" not in prompt


class TestSignUpEmail:

    @patch("signalist.services.news_summary_job.email_service.send_welcome_email",
           new_callable=AsyncMock)
    @patch("signalist.services.news_summary_job.LLMService")
    def test_personalised_intro(self, llm_cls: MagicMock, send: AsyncMock) -> None:
        llm_cls.return_value.generate_text = AsyncMock(return_value="<p>Hi there</p>")
        result = asyncio.run(send_sign_up_email({
            "email": "ada@example.com", "name": "Ada",
            "investmentGoals": "Growth", "riskTolerance": "High",
            "preferredIndustry": "Energy",
        }))

        prompt = llm_cls.return_value.generate_text.call_args.args[0]
        assert "Investment goals: Growth" in prompt
        assert "Preferred industry: Energy" in prompt
        send.assert_awaited_once_with(
            email="ada@example.com", name="Ada", intro="<p>Hi there</p>"
        )
        assert result["success"] is True

    @patch("signalist.services.news_summary_job.email_service.send_welcome_email",
           new_callable=AsyncMock)
    @patch("signalist.services.news_summary_job.LLMService")
    def test_fallback_intro_on_failure(self, llm_cls: MagicMock, send: AsyncMock) -> None:
        llm_cls.return_value.generate_text = AsyncMock(side_effect=RuntimeError("down"))
        asyncio.run(send_sign_up_email({"email": "ada@example.com", "name": "Ada"}))
        assert send.call_args.kwargs["intro"] == WELCOME_FALLBACK
