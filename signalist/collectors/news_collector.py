"""News collector — fetches market news from the Finnhub REST API.

Two modes:
  - Watchlist news: company news for each symbol, interleaved round-robin so
    one noisy ticker can't crowd out the rest.
  - General news: the market-wide feed, used when a user tracks nothing or
    when none of their symbols produced anything usable.
"""

from __future__ import annotations

from collections import deque
from datetime import date, timedelta

import httpx

from signalist.config import settings
from signalist.errors import NewsFetchError
from signalist.models.news import MarketNewsArticle
from signalist.utils.logger import logger

_TIMEOUT = httpx.Timeout(15.0, connect=5.0)


def clean_symbols(symbols: list[str] | None) -> list[str]:
    """Trim, uppercase and dedupe, keeping first-seen order."""
    seen: list[str] = []
    for raw in symbols or []:
        sym = raw.strip().upper()
        if sym and sym not in seen:
            seen.append(sym)
    return seen


class NewsCollector:
    """Collects news articles for a list of ticker symbols."""

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self._client = client
        self.base_url = settings.FINNHUB_BASE_URL.rstrip("/")
        self.max_articles = settings.NEWS_MAX_ARTICLES

    async def get_news(self, symbols: list[str] | None = None) -> list[MarketNewsArticle]:
        """Return up to ``max_articles`` articles for the symbols.

        Falls back to general market news when no symbols are given or no
        symbol yields a valid article.
        """
        if not settings.FINNHUB_API_KEY:
            raise NewsFetchError("FINNHUB_API_KEY is not configured")

        cleaned = clean_symbols(symbols)
        if cleaned:
            articles = await self._fetch_watchlist_news(cleaned)
            if articles:
                logger.info(
                    "[News] %d articles for %s", len(articles), ", ".join(cleaned)
                )
                return articles
            logger.info("[News] No company news for %s, using general news", cleaned)

        return await self._fetch_general_news()

    # ── Watchlist news ────────────────────────────────────────────

    async def _fetch_watchlist_news(self, symbols: list[str]) -> list[MarketNewsArticle]:
        today = date.today()
        start = today - timedelta(days=settings.NEWS_LOOKBACK_DAYS)

        queues: dict[str, deque[MarketNewsArticle]] = {}
        for symbol in symbols:
            try:
                raw = await self._get_json(
                    "/company-news",
                    {"symbol": symbol, "from": start.isoformat(), "to": today.isoformat()},
                )
            except NewsFetchError as e:
                # One bad symbol shouldn't sink the others
                logger.warning("[News] Company news failed for %s: %s", symbol, e)
                continue
            queues[symbol] = deque(
                a for a in self._parse(raw) if a.is_valid()
            )

        picked: list[MarketNewsArticle] = []
        while len(picked) < self.max_articles and any(queues.values()):
            for symbol in symbols:
                queue = queues.get(symbol)
                if not queue:
                    continue
                picked.append(queue.popleft())
                if len(picked) >= self.max_articles:
                    break

        picked.sort(key=lambda a: a.datetime, reverse=True)
        return picked

    # ── General news ──────────────────────────────────────────────

    async def _fetch_general_news(self) -> list[MarketNewsArticle]:
        raw = await self._get_json("/news", {"category": "general"})

        seen: set[str] = set()
        unique: list[MarketNewsArticle] = []
        for article in self._parse(raw):
            key = f"{article.id}-{article.url}-{article.headline}"
            if key in seen or not article.is_valid():
                continue
            seen.add(key)
            unique.append(article)
            if len(unique) >= self.max_articles:
                break

        logger.info("[News] %d general market articles", len(unique))
        return unique

    # ── HTTP ──────────────────────────────────────────────────────

    async def _get_json(self, path: str, params: dict[str, str]) -> list[dict]:
        url = f"{self.base_url}{path}"
        query = {**params, "token": settings.FINNHUB_API_KEY}
        try:
            if self._client is not None:
                resp = await self._client.get(url, params=query)
            else:
                async with httpx.AsyncClient(timeout=_TIMEOUT) as client:
                    resp = await client.get(url, params=query)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise NewsFetchError(f"Finnhub {path} failed: {e}") from e

        if not isinstance(data, list):
            raise NewsFetchError(f"Finnhub {path} returned {type(data).__name__}")
        return data

    @staticmethod
    def _parse(raw: list[dict]) -> list[MarketNewsArticle]:
        articles = []
        for item in raw:
            if not isinstance(item, dict):
                continue
            try:
                articles.append(MarketNewsArticle.model_validate(item))
            except ValueError:
                logger.debug("[News] Skipping malformed article: %s", item.get("id"))
        return articles
