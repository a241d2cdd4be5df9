"""Prompt templates stored as Markdown under ``signalist/prompts``.

Placeholders use ``{{name}}`` and are filled by plain string replacement,
so JSON payloads with braces pass through untouched.
"""

from __future__ import annotations

import json
from functools import lru_cache

from signalist.config import settings

NEWS_SUMMARY_PROMPT_FILE = "news_summary_email.md"
WELCOME_PROMPT_FILE = "welcome_email.md"


@lru_cache(maxsize=None)
def load_prompt(filename: str) -> str:
    path = settings.PROMPTS_DIR / filename
    if not path.exists():
        raise FileNotFoundError(f"Prompt file not found: {path}")
    return path.read_text(encoding="utf-8")


def render_prompt(filename: str, **values: str) -> str:
    text = load_prompt(filename)
    for key, value in values.items():
        text = text.replace("{{" + key + "}}", value)
    return text


def news_summary_prompt(news: list[dict]) -> str:
    return render_prompt(NEWS_SUMMARY_PROMPT_FILE, newsData=json.dumps(news, indent=2))


def welcome_prompt(
    investment_goals: str, risk_tolerance: str, preferred_industry: str
) -> str:
    profile = (
        f"- Investment goals: {investment_goals}\n"
        f"- Risk tolerance: {risk_tolerance}\n"
        f"- Preferred industry: {preferred_industry}"
    )
    return render_prompt(WELCOME_PROMPT_FILE, userProfile=profile)
