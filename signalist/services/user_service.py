"""User lookups for the batch email job."""

from __future__ import annotations

import duckdb

from signalist.database import get_db
from signalist.models.user import User, UserForEmail
from signalist.services.auth_service import USER_COLUMNS, row_to_user
from signalist.utils.logger import logger


def get_all_users_for_email() -> list[UserForEmail]:
    """Every user that can receive mail: an email address and a name.

    Database errors are logged and produce an empty list so the caller can
    report "no users" instead of crashing the scheduled run.
    """
    try:
        db = get_db()
        rows = db.execute(
            "SELECT id, email, name FROM users "
            "WHERE email IS NOT NULL ORDER BY created_at"
        ).fetchall()
    except duckdb.Error as e:
        logger.error("[Users] Error fetching users for emails: %s", e)
        return []

    return [
        UserForEmail(id=str(r[0]), email=r[1], name=r[2])
        for r in rows
        if r[1] and r[2]
    ]


def get_user_by_email(email: str) -> User | None:
    db = get_db()
    row = db.execute(
        f"SELECT {USER_COLUMNS} FROM users WHERE email = ?",
        [email.strip().lower()],
    ).fetchone()
    return row_to_user(row) if row else None
