"""FastAPI application — auth, watchlist, diagnostics and scheduler endpoints."""

from __future__ import annotations

import traceback

from fastapi import BackgroundTasks, Depends, FastAPI, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError

from signalist.config import settings
from signalist.database import close_db, connection_info
from signalist.errors import (
    MissingFields,
    SignalistError,
    Unauthorized,
    signalist_error_handler,
    validation_error_handler,
)
from signalist.models.user import SignInRequest, SignUpRequest, User
from signalist.models.watchlist import WatchlistAddRequest
from signalist.services.auth_service import AuthService
from signalist.services.llm_service import LLMService, close_shared_client
from signalist.services.scheduler import (
    DAILY_NEWS_EVENT,
    USER_CREATED_EVENT,
    NewsScheduler,
)
from signalist.services.watchlist_service import WatchlistService
from signalist.utils.logger import logger

app = FastAPI(
    title="Signalist",
    description="Stock watchlists with daily AI news summaries by email",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.APP_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(SignalistError, signalist_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)


# ── Models ──────────────────────────────────────────────────────────
class EventRequest(BaseModel):
    name: str
    data: dict = Field(default_factory=dict)


# ── Singleton services ──────────────────────────────────────────────
_auth = AuthService()
_watchlist = WatchlistService()
_scheduler = NewsScheduler()


# ── Helpers ─────────────────────────────────────────────────────────
def current_user(request: Request) -> User:
    """Resolve the session cookie to a user, or answer 401.

    A request with no cookie is rejected before any database access.
    """
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        raise Unauthorized()
    user = _auth.get_session_user(token)
    if user is None:
        raise Unauthorized()
    return user


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_TTL_DAYS * 24 * 60 * 60,
        httponly=True,
        samesite="lax",
        secure=settings.ENVIRONMENT == "production",
    )


def _server_error(message: str) -> JSONResponse:
    return JSONResponse(status_code=500, content={"success": False, "error": message})


# ══════════════════════════════════════════════════════════════════════
# HEALTH & DIAGNOSTICS
# ══════════════════════════════════════════════════════════════════════


@app.get("/api/health")
async def health() -> dict:
    """Detailed health check including LLM status."""
    llm_status = await LLMService().health_check()
    return {
        "api": "ok",
        "llm": llm_status,
        "scheduler": _scheduler.is_running,
    }


@app.get("/api/test-db", response_model=None)
async def database_diagnostic() -> dict | JSONResponse:
    """Unauthenticated database connectivity check."""
    try:
        info = connection_info()
    except Exception as e:
        logger.error("Database diagnostic failed: %s", e, exc_info=True)
        body: dict = {"success": False, "error": str(e)}
        if settings.ENVIRONMENT == "development":
            body["stack"] = traceback.format_exc()
        return JSONResponse(status_code=500, content=body)

    return {"success": True, "message": "Database connection successful!", **info}


# ══════════════════════════════════════════════════════════════════════
# AUTH
# ══════════════════════════════════════════════════════════════════════


@app.post("/api/auth/sign-up")
async def sign_up(
    req: SignUpRequest, response: Response, background_tasks: BackgroundTasks,
) -> dict:
    """Create an account, open a session and queue the welcome email."""
    if not req.email.strip() or not req.name.strip():
        raise MissingFields("Email and name are required")

    user, token = _auth.sign_up(req)
    _set_session_cookie(response, token)

    background_tasks.add_task(
        _scheduler.dispatch_event,
        USER_CREATED_EVENT,
        {
            "email": user.email,
            "name": user.name,
            "country": user.country,
            "investmentGoals": user.investment_goals,
            "riskTolerance": user.risk_tolerance,
            "preferredIndustry": user.preferred_industry,
        },
    )
    return {"success": True, "data": user.model_dump(mode="json", by_alias=True)}


@app.post("/api/auth/sign-in")
async def sign_in(req: SignInRequest, response: Response) -> dict:
    user, token = _auth.sign_in(req)
    _set_session_cookie(response, token)
    return {"success": True, "data": user.model_dump(mode="json", by_alias=True)}


@app.post("/api/auth/sign-out")
async def sign_out(request: Request, response: Response) -> dict:
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if token:
        _auth.sign_out(token)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return {"success": True}


@app.get("/api/auth/session")
async def get_session(user: User = Depends(current_user)) -> dict:
    return {"success": True, "data": user.model_dump(mode="json", by_alias=True)}


# ══════════════════════════════════════════════════════════════════════
# WATCHLIST
# ══════════════════════════════════════════════════════════════════════


@app.get("/api/watchlist", response_model=None)
async def get_watchlist(user: User = Depends(current_user)) -> dict | JSONResponse:
    """The signed-in user's watchlist, newest first."""
    try:
        items = _watchlist.list_items(user.id)
    except Exception as e:
        logger.error("Error fetching watchlist: %s", e, exc_info=True)
        return _server_error("Failed to fetch watchlist")
    return {"success": True, "data": [i.to_json() for i in items]}


@app.post("/api/watchlist", response_model=None)
async def add_to_watchlist(
    request: Request, user: User = Depends(current_user),
) -> dict | JSONResponse:
    """Track a symbol. Duplicates answer 400.

    The body is read here rather than declared as a parameter so the session
    check runs first: an anonymous request answers 401 whatever it sends.
    """
    try:
        req = WatchlistAddRequest.model_validate(await request.json())
    except (ValueError, ValidationError):
        raise MissingFields() from None

    if not (req.symbol or "").strip() or not (req.company or "").strip():
        raise MissingFields("Symbol and company are required")

    try:
        item = _watchlist.add_item(user.id, req.symbol, req.company.strip())
    except SignalistError:
        raise
    except Exception as e:
        logger.error("Error adding to watchlist: %s", e, exc_info=True)
        return _server_error("Failed to add to watchlist")

    return {"success": True, "message": "Added to watchlist", "data": item.to_json()}


@app.delete("/api/watchlist", response_model=None)
async def remove_from_watchlist(
    symbol: str | None = Query(default=None),
    user: User = Depends(current_user),
) -> dict | JSONResponse:
    """Stop tracking a symbol. Unknown symbols answer 404."""
    if not (symbol or "").strip():
        raise MissingFields("Symbol is required")

    try:
        _watchlist.remove_item(user.id, symbol)
    except SignalistError:
        raise
    except Exception as e:
        logger.error("Error removing from watchlist: %s", e, exc_info=True)
        return _server_error("Failed to remove from watchlist")

    return {"success": True, "message": "Removed from watchlist"}


# ══════════════════════════════════════════════════════════════════════
# EVENTS & SCHEDULER
# ══════════════════════════════════════════════════════════════════════


@app.post("/api/events")
async def send_event(req: EventRequest, background_tasks: BackgroundTasks) -> dict:
    """Fire a named event; the handler runs after the response is sent."""
    if req.name not in (DAILY_NEWS_EVENT, USER_CREATED_EVENT):
        raise MissingFields(f"Unknown event: {req.name}")

    background_tasks.add_task(_scheduler.dispatch_event, req.name, req.data)
    logger.info("[Events] Accepted %s", req.name)
    return {"status": "accepted", "event": req.name}


@app.on_event("startup")
async def _auto_start_scheduler() -> None:
    if not settings.SCHEDULER_AUTOSTART:
        logger.info("[Boot] Scheduler autostart disabled")
        return
    result = _scheduler.start()
    logger.info("[Boot] Scheduler auto-started: %s", result)


@app.on_event("shutdown")
async def _shutdown() -> None:
    _scheduler.stop()
    await close_shared_client()
    close_db()


@app.post("/api/scheduler/start")
async def scheduler_start() -> dict:
    return _scheduler.start()


@app.post("/api/scheduler/stop")
async def scheduler_stop() -> dict:
    """Kill switch — stop all scheduled jobs."""
    return _scheduler.stop()


@app.get("/api/scheduler/status")
async def scheduler_status() -> dict:
    return _scheduler.get_status()


@app.post("/api/scheduler/run/{job_name}")
async def scheduler_run_job(job_name: str) -> dict:
    """Manually trigger a scheduler job (daily_news_summary)."""
    return await _scheduler.run_job(job_name)


@app.get("/api/scheduler/history")
async def scheduler_history(
    limit: int = Query(default=20, ge=1, le=100),
) -> dict:
    history = _scheduler.get_history(limit=limit)
    return {"count": len(history), "history": history}
