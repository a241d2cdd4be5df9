"""AuthService — email/password accounts with cookie-backed sessions.

Passwords are hashed with bcrypt. A session is a random token stored in the
``sessions`` table; the token travels in an HttpOnly cookie and is looked up
on every authenticated request.
"""

from __future__ import annotations

import secrets
import uuid
from datetime import datetime, timedelta

import bcrypt

from signalist.config import settings
from signalist.database import get_db
from signalist.errors import (
    EmailAlreadyRegistered,
    InvalidCredentials,
    WeakPassword,
)
from signalist.models.user import SignInRequest, SignUpRequest, User
from signalist.utils.logger import logger

MIN_PASSWORD_LENGTH = 8

# bcrypt only looks at the first 72 bytes
_BCRYPT_MAX_BYTES = 72

USER_COLUMNS = (
    "id, email, name, country, investment_goals, risk_tolerance, "
    "preferred_industry, created_at"
)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    raw = password.encode("utf-8")[:_BCRYPT_MAX_BYTES]
    return bcrypt.hashpw(raw, bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash."""
    raw = password.encode("utf-8")[:_BCRYPT_MAX_BYTES]
    try:
        return bcrypt.checkpw(raw, password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def normalize_email(email: str) -> str:
    return email.strip().lower()


def row_to_user(row: tuple) -> User:
    return User(
        id=row[0],
        email=row[1],
        name=row[2] or "",
        country=row[3] or "",
        investment_goals=row[4] or "",
        risk_tolerance=row[5] or "",
        preferred_industry=row[6] or "",
        created_at=row[7],
    )


class AuthService:
    """Creates accounts and sessions, and resolves session tokens to users."""

    # ── Accounts ──────────────────────────────────────────────────

    def sign_up(self, req: SignUpRequest) -> tuple[User, str]:
        """Create a user and a first session. Returns (user, session token)."""
        email = normalize_email(req.email)
        if len(req.password) < MIN_PASSWORD_LENGTH:
            raise WeakPassword()

        db = get_db()
        existing = db.execute(
            "SELECT id FROM users WHERE email = ?", [email]
        ).fetchone()
        if existing:
            logger.info("[Auth] Sign-up rejected, %s already registered", email)
            raise EmailAlreadyRegistered()

        user_id = uuid.uuid4().hex
        now = datetime.now()
        db.execute(
            """
            INSERT INTO users
                (id, email, name, password_hash, country, investment_goals,
                 risk_tolerance, preferred_industry, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                user_id, email, req.name.strip(), hash_password(req.password),
                req.country, req.investment_goals, req.risk_tolerance,
                req.preferred_industry, now,
            ],
        )
        db.commit()
        logger.info("[Auth] Created user %s (%s)", user_id, email)

        user = User(
            id=user_id,
            email=email,
            name=req.name.strip(),
            country=req.country,
            investment_goals=req.investment_goals,
            risk_tolerance=req.risk_tolerance,
            preferred_industry=req.preferred_industry,
            created_at=now,
        )
        return user, self.create_session(user_id)

    def sign_in(self, req: SignInRequest) -> tuple[User, str]:
        """Check credentials and open a new session."""
        email = normalize_email(req.email)
        db = get_db()
        row = db.execute(
            f"SELECT {USER_COLUMNS}, password_hash FROM users WHERE email = ?",
            [email],
        ).fetchone()

        # Same error for unknown email and wrong password
        if not row or not verify_password(req.password, row[8]):
            logger.info("[Auth] Failed sign-in for %s", email)
            raise InvalidCredentials()

        user = row_to_user(row)
        return user, self.create_session(user.id)

    # ── Sessions ──────────────────────────────────────────────────

    @staticmethod
    def create_session(user_id: str) -> str:
        token = secrets.token_urlsafe(32)
        now = datetime.now()
        db = get_db()
        db.execute(
            "INSERT INTO sessions (token, user_id, created_at, expires_at) "
            "VALUES (?, ?, ?, ?)",
            [token, user_id, now, now + timedelta(days=settings.SESSION_TTL_DAYS)],
        )
        db.commit()
        return token

    @staticmethod
    def sign_out(token: str) -> None:
        db = get_db()
        db.execute("DELETE FROM sessions WHERE token = ?", [token])
        db.commit()

    @staticmethod
    def get_session_user(token: str) -> User | None:
        """Return the user behind a live session token, else None.

        Expired sessions are deleted on sight.
        """
        db = get_db()
        row = db.execute(
            "SELECT user_id, expires_at FROM sessions WHERE token = ?", [token]
        ).fetchone()
        if not row:
            return None

        if row[1] is not None and row[1] <= datetime.now():
            db.execute("DELETE FROM sessions WHERE token = ?", [token])
            db.commit()
            logger.debug("[Auth] Session for user %s expired", row[0])
            return None

        user_row = db.execute(
            f"SELECT {USER_COLUMNS} FROM users WHERE id = ?", [row[0]]
        ).fetchone()
        return row_to_user(user_row) if user_row else None
