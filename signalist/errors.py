"""Domain errors and their JSON translation.

Every error a route can answer with lives here. Handlers are registered on
the app in ``signalist.main``.
"""

from __future__ import annotations

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class SignalistError(Exception):
    """Base class: carries the HTTP status and the user-facing message."""

    status_code: int = 500
    message: str = "Something went wrong"
    include_success: bool = True

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        self.message = message or self.message

    def to_body(self) -> dict:
        if self.include_success:
            return {"success": False, "error": self.message}
        return {"error": self.message}


class Unauthorized(SignalistError):
    status_code = 401
    message = "Unauthorized"
    include_success = False


class MissingFields(SignalistError):
    status_code = 400
    message = "Invalid request body"
    include_success = False


class DuplicateWatchlistItem(SignalistError):
    status_code = 400
    message = "Stock already in watchlist"


class WatchlistItemNotFound(SignalistError):
    status_code = 404
    message = "Stock not found in watchlist"


class EmailAlreadyRegistered(SignalistError):
    status_code = 400
    message = "User already exists"


class InvalidCredentials(SignalistError):
    status_code = 401
    message = "Invalid email or password"


class WeakPassword(SignalistError):
    status_code = 400
    message = "Password must be at least 8 characters"


class NewsFetchError(SignalistError):
    message = "Failed to fetch news"


class EmailNotConfigured(SignalistError):
    message = "SMTP is not configured"


def signalist_error_handler(_: Request, exc: SignalistError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


def validation_error_handler(_: Request, __: RequestValidationError) -> JSONResponse:
    # Malformed bodies are client errors like missing fields, not 422s
    return JSONResponse(status_code=400, content={"error": MissingFields.message})
