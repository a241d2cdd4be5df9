"""News article model — mirrors the Finnhub news payload."""

from __future__ import annotations

from pydantic import BaseModel


class MarketNewsArticle(BaseModel):
    """A single article from the company-news or general-news endpoints.

    ``datetime`` is a unix timestamp in seconds, as Finnhub sends it.
    """

    id: int | str = 0
    headline: str = ""
    summary: str = ""
    source: str = ""
    url: str = ""
    datetime: int = 0
    image: str = ""
    category: str = ""
    related: str = ""

    def is_valid(self) -> bool:
        """Usable in an email: headline, summary, link and a timestamp."""
        return bool(self.headline and self.summary and self.url and self.datetime)
