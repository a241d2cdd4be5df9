"""WatchlistService — per-user tracked symbols.

Symbols are stored uppercase; every lookup uppercases its argument too, so
``aapl`` and ``AAPL`` always name the same row.

Usage (from main.py):
    ws = WatchlistService()
    ws.add_item(user.id, "aapl", "Apple Inc.")
    ws.list_items(user.id)
"""

from __future__ import annotations

from datetime import datetime

import duckdb

from signalist.database import get_db
from signalist.errors import DuplicateWatchlistItem, WatchlistItemNotFound
from signalist.models.watchlist import WatchlistItem
from signalist.services.user_service import get_user_by_email
from signalist.utils.logger import logger


def normalize_symbol(symbol: str) -> str:
    return symbol.strip().upper()


class WatchlistService:
    """Manages each user's watchlist — listing, adding and removing symbols."""

    # ── Read operations ───────────────────────────────────────────

    def list_items(self, user_id: str) -> list[WatchlistItem]:
        """Return the user's watchlist, newest first."""
        db = get_db()
        rows = db.execute(
            """
            SELECT user_id, symbol, company, added_at
            FROM watchlist
            WHERE user_id = ?
            ORDER BY added_at DESC
            """,
            [user_id],
        ).fetchall()
        return [self._row_to_item(r) for r in rows]

    def get_symbols(self, user_id: str) -> list[str]:
        """Return just the symbols, newest first."""
        db = get_db()
        rows = db.execute(
            "SELECT symbol FROM watchlist WHERE user_id = ? ORDER BY added_at DESC",
            [user_id],
        ).fetchall()
        return [str(r[0]) for r in rows]

    def get_symbols_by_email(self, email: str) -> list[str]:
        """Symbols for the user registered under ``email``; [] if unknown."""
        user = get_user_by_email(email)
        if not user:
            logger.info("[Watchlist] No user found with email: %s", email)
            return []
        return self.get_symbols(user.id)

    def is_in_watchlist(self, user_id: str, symbol: str) -> bool:
        db = get_db()
        row = db.execute(
            "SELECT 1 FROM watchlist WHERE user_id = ? AND symbol = ?",
            [user_id, normalize_symbol(symbol)],
        ).fetchone()
        return row is not None

    # ── Write operations ──────────────────────────────────────────

    def add_item(self, user_id: str, symbol: str, company: str) -> WatchlistItem:
        """Add a symbol for a user. Raises DuplicateWatchlistItem if present."""
        symbol = normalize_symbol(symbol)
        db = get_db()

        if self.is_in_watchlist(user_id, symbol):
            logger.info("[Watchlist] %s already tracked by %s", symbol, user_id)
            raise DuplicateWatchlistItem()

        now = datetime.now()
        try:
            db.execute(
                """
                INSERT INTO watchlist (user_id, symbol, company, added_at)
                VALUES (?, ?, ?, ?)
                """,
                [user_id, symbol, company, now],
            )
        except duckdb.ConstraintException as e:
            # Lost a race with a concurrent insert of the same pair
            raise DuplicateWatchlistItem() from e
        db.commit()

        logger.info("[Watchlist] Added %s for %s", symbol, user_id)
        return WatchlistItem(
            user_id=user_id, symbol=symbol, company=company, added_at=now
        )

    def remove_item(self, user_id: str, symbol: str) -> None:
        """Delete a symbol. Raises WatchlistItemNotFound if it isn't tracked."""
        symbol = normalize_symbol(symbol)
        if not self.is_in_watchlist(user_id, symbol):
            raise WatchlistItemNotFound()

        db = get_db()
        db.execute(
            "DELETE FROM watchlist WHERE user_id = ? AND symbol = ?",
            [user_id, symbol],
        )
        db.commit()
        logger.info("[Watchlist] Removed %s for %s", symbol, user_id)

    # ── Helpers ───────────────────────────────────────────────────

    @staticmethod
    def _row_to_item(row: tuple) -> WatchlistItem:
        return WatchlistItem(
            user_id=row[0], symbol=row[1], company=row[2], added_at=row[3]
        )
