"""DuckDB session management and table initialization."""

from __future__ import annotations

import duckdb

from signalist.config import settings
from signalist.utils.logger import logger

_connection: duckdb.DuckDBPyConnection | None = None


def get_db() -> duckdb.DuckDBPyConnection:
    """Return the singleton DuckDB connection, creating tables on first call."""
    global _connection  # noqa: PLW0603
    if _connection is None:
        db_path = str(settings.DB_PATH)
        logger.info("Opening DuckDB at %s", db_path)
        _connection = duckdb.connect(db_path)
        _init_tables(_connection)
    return _connection


def close_db() -> None:
    """Close the singleton connection; the next get_db() reopens it."""
    global _connection  # noqa: PLW0603
    if _connection is not None:
        _connection.close()
        _connection = None
        logger.info("Closed DuckDB connection")


def is_connected() -> bool:
    return _connection is not None


def _init_tables(conn: duckdb.DuckDBPyConnection) -> None:
    """Create tables if they don't exist."""
    conn.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id                  VARCHAR PRIMARY KEY,
            email               VARCHAR NOT NULL UNIQUE,
            name                VARCHAR,
            password_hash       VARCHAR NOT NULL,
            country             VARCHAR DEFAULT '',
            investment_goals    VARCHAR DEFAULT '',
            risk_tolerance      VARCHAR DEFAULT '',
            preferred_industry  VARCHAR DEFAULT '',
            created_at          TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS sessions (
            token       VARCHAR PRIMARY KEY,
            user_id     VARCHAR NOT NULL,
            created_at  TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            expires_at  TIMESTAMP NOT NULL
        );
    """)

    # One row per (user, symbol); the key doubles as the duplicate guard
    conn.execute("""
        CREATE TABLE IF NOT EXISTS watchlist (
            user_id     VARCHAR NOT NULL,
            symbol      VARCHAR NOT NULL,
            company     VARCHAR NOT NULL,
            added_at    TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            PRIMARY KEY (user_id, symbol)
        );
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS scheduler_runs (
            id            VARCHAR PRIMARY KEY,
            job_name      VARCHAR NOT NULL,
            started_at    TIMESTAMP,
            completed_at  TIMESTAMP,
            status        VARCHAR DEFAULT 'running',
            summary       VARCHAR DEFAULT '',
            error         VARCHAR DEFAULT ''
        );
    """)

    logger.info("DuckDB tables initialized")


def connection_info() -> dict:
    """Describe the live connection for the diagnostic endpoint.

    Opens the connection if needed, so a failure here means the database
    itself is unreachable.
    """
    db = get_db()
    rows = db.execute(
        "SELECT table_name FROM information_schema.tables "
        "WHERE table_schema = 'main' ORDER BY table_name"
    ).fetchall()
    tables = [str(r[0]) for r in rows]
    name_row = db.execute("SELECT current_database()").fetchone()
    connected = is_connected()
    return {
        "database": name_row[0] if name_row else settings.DB_PATH.stem,
        "path": str(settings.DB_PATH),
        "collections": tables,
        "collectionCount": len(tables),
        "connectionState": 1 if connected else 0,
        "connectionStateText": "Connected" if connected else "Not Connected",
    }
