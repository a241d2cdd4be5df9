"""News Scheduler — APScheduler-based daily automation plus a tiny event bus.

Jobs:
  - Daily news summary (NEWS_SUMMARY_CRON, default 14:00 UTC)

Events (dispatched on demand, e.g. from POST /api/events):
  - app/send.daily.news → daily news summary, right now
  - app/user.created    → personalised welcome email
"""

from __future__ import annotations

import uuid
from collections.abc import Awaitable, Callable
from datetime import datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from signalist.config import settings
from signalist.database import get_db
from signalist.services.news_summary_job import (
    run_daily_news_summary,
    send_sign_up_email,
)
from signalist.utils.dates import format_run_time
from signalist.utils.logger import logger

DAILY_NEWS_JOB = "daily_news_summary"
SIGN_UP_EMAIL_JOB = "sign_up_email"

DAILY_NEWS_EVENT = "app/send.daily.news"
USER_CREATED_EVENT = "app/user.created"


class NewsScheduler:
    """Owns the cron schedule and routes named events to job handlers."""

    def __init__(
        self,
        daily_news: Callable[[], Awaitable[dict]] = run_daily_news_summary,
        sign_up_email: Callable[[dict], Awaitable[dict]] = send_sign_up_email,
    ) -> None:
        self._daily_news = daily_news
        self._sign_up_email = sign_up_email
        self._scheduler: AsyncIOScheduler | None = None
        self.is_running = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> dict:
        """Start the automated daily schedule."""
        if self.is_running:
            return {"status": "already_running"}

        self._scheduler = AsyncIOScheduler(timezone=settings.SCHEDULER_TIMEZONE)
        self._scheduler.add_job(
            self.daily_news_summary,
            CronTrigger.from_crontab(
                settings.NEWS_SUMMARY_CRON, timezone=settings.SCHEDULER_TIMEZONE,
            ),
            id=DAILY_NEWS_JOB,
            name="Daily News Summary",
            replace_existing=True,
        )

        self._scheduler.start()
        self.is_running = True
        logger.info(
            "[Scheduler] Started — daily news at '%s' %s",
            settings.NEWS_SUMMARY_CRON, settings.SCHEDULER_TIMEZONE,
        )
        return {"status": "started", "jobs": len(self._scheduler.get_jobs())}

    def stop(self) -> dict:
        """Stop all scheduled jobs."""
        if not self.is_running or not self._scheduler:
            return {"status": "not_running"}

        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        self.is_running = False
        logger.info("[Scheduler] Stopped — all jobs removed")
        return {"status": "stopped"}

    # ------------------------------------------------------------------
    # Status & History
    # ------------------------------------------------------------------

    def get_status(self) -> dict:
        jobs = []
        if self._scheduler and self.is_running:
            for job in self._scheduler.get_jobs():
                next_run = job.next_run_time
                jobs.append({
                    "id": job.id,
                    "name": job.name,
                    "next_run": next_run.isoformat() if next_run else None,
                    "next_run_human": format_run_time(next_run),
                })

        return {
            "is_running": self.is_running,
            "cron": settings.NEWS_SUMMARY_CRON,
            "timezone": settings.SCHEDULER_TIMEZONE,
            "jobs": jobs,
            "job_count": len(jobs),
        }

    @staticmethod
    def get_history(limit: int = 20) -> list[dict]:
        """Recent job runs, newest first."""
        cursor = get_db().execute(
            f"SELECT {', '.join(_RUN_COLUMNS)} FROM scheduler_runs "
            "ORDER BY started_at DESC LIMIT ?",
            [limit],
        )
        history = []
        for row in cursor.fetchall():
            run = dict(zip(_RUN_COLUMNS, row))
            for key in ("started_at", "completed_at"):
                run[key] = str(run[key]) if run[key] else None
            history.append(run)
        return history

    # ------------------------------------------------------------------
    # Manual triggers & events
    # ------------------------------------------------------------------

    async def run_job(self, job_name: str) -> dict:
        """Manually trigger a job by name."""
        if job_name != DAILY_NEWS_JOB:
            return {"error": f"Unknown job: {job_name}"}
        result = await self.daily_news_summary()
        return {"status": "completed", "job": job_name, "result": result}

    async def dispatch_event(self, name: str, data: dict | None = None) -> dict:
        """Route a named event to its handler and return the handler's result."""
        if name == DAILY_NEWS_EVENT:
            return await self.daily_news_summary()
        if name == USER_CREATED_EVENT:
            return await self.welcome_email(data or {})
        logger.warning("[Scheduler] Ignoring unknown event %s", name)
        return {"error": f"Unknown event: {name}"}

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------

    async def daily_news_summary(self) -> dict:
        return await self._recorded(
            DAILY_NEWS_JOB,
            self._daily_news,
            on_error="Daily news summary failed",
        )

    async def welcome_email(self, data: dict) -> dict:
        return await self._recorded(
            SIGN_UP_EMAIL_JOB,
            self._sign_up_email,
            data,
            on_error=f"Welcome email to {data.get('email')} failed",
        )

    async def _recorded(
        self,
        job_name: str,
        job: Callable[..., Awaitable[dict]],
        *args: object,
        on_error: str,
    ) -> dict:
        """Run a job with a scheduler_runs row around it.

        Job failures are logged and recorded, then returned as a result dict.
        A failing history write is logged and the job runs regardless, so
        nothing propagates into APScheduler or a background task.
        """
        run_id = _safe_bookkeeping(_open_run, job_name)
        logger.info("[Scheduler] %s started (run %s)", job_name, run_id)
        try:
            result = await job(*args)
        except Exception as e:
            if run_id:
                _safe_bookkeeping(_close_run, run_id, "error", error=str(e))
            logger.exception("[Scheduler] %s", on_error)
            return {"success": False, "message": on_error, "error": str(e)}

        summary = str(result.get("message", ""))
        status = "success" if result.get("success") else "skipped"
        if run_id:
            _safe_bookkeeping(_close_run, run_id, status, summary)
        logger.info("[Scheduler] %s %s: %s", job_name, status, summary)
        return result


# ── scheduler_runs bookkeeping ─────────────────────────────────────

_RUN_COLUMNS = ("id", "job_name", "started_at", "completed_at", "status", "summary", "error")


def _safe_bookkeeping(
    write: Callable[..., str | None], *args: object, **kwargs: object,
) -> str | None:
    """Run a history write; on failure log it and return None."""
    try:
        return write(*args, **kwargs)
    except Exception:
        logger.exception("[Scheduler] Could not write run history (%s)", write.__name__)
        return None


def _open_run(job_name: str) -> str:
    run_id = uuid.uuid4().hex[:8]
    get_db().execute(
        "INSERT INTO scheduler_runs (id, job_name, started_at, status) "
        "VALUES (?, ?, ?, 'running')",
        [run_id, job_name, datetime.now()],
    )
    return run_id


def _close_run(run_id: str, status: str, summary: str = "", error: str = "") -> None:
    get_db().execute(
        "UPDATE scheduler_runs SET completed_at = ?, status = ?, summary = ?, error = ? "
        "WHERE id = ?",
        [datetime.now(), status, summary, error, run_id],
    )
