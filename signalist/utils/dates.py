"""Date helpers for email headers and scheduler status.

All scheduling runs in UTC (the daily cron fires at 14:00 UTC), so dates
shown to users are computed in UTC too. Uses stdlib zoneinfo.
"""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

UTC = ZoneInfo("UTC")


def now_utc() -> datetime:
    return datetime.now(UTC)


def format_date_today(dt: datetime | None = None) -> str:
    """Long-form date, e.g. "Sunday, October 18, 2026"."""
    now = dt or now_utc()
    return f"{now:%A}, {now:%B} {now.day}, {now.year}"


def format_run_time(dt: datetime | None) -> str:
    """Human-readable next-run time for the scheduler status panel."""
    if dt is None:
        return "—"
    return dt.astimezone(UTC).strftime("%b %d %I:%M %p UTC")
