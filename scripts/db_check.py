"""Quick DB connectivity check — opens the database and reports tables and row counts.

Run: python scripts/db_check.py
"""

import sys

import duckdb

from signalist.config import settings
from signalist.database import close_db, connection_info, get_db

TABLES = ["users", "sessions", "watchlist", "scheduler_runs"]


def main() -> int:
    print("=" * 50)
    print("  SIGNALIST — DB CONNECTION CHECK")
    print("=" * 50)
    print(f"  Environment: {settings.ENVIRONMENT}")
    print(f"  DB path:     {settings.DB_PATH}")

    try:
        info = connection_info()
    except (duckdb.Error, OSError) as e:
        print(f"\n  FAILED to open database: {e}")
        print("\n  Troubleshooting tips:")
        if isinstance(e, duckdb.IOException):
            print("   - Another process may hold the database lock (is the server running?)")
            print("   - Check that the directory is writable")
        else:
            print("   - Check DB_PATH in your environment")
            print("   - Delete the file if it is not a DuckDB database")
        return 1

    print(f"  Database:    {info['database']}")
    print(f"  State:       {info['connectionStateText']}")
    print("-" * 50)

    db = get_db()
    all_ok = True
    for table in TABLES:
        try:
            count = db.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
            print(f"  {table:25s}  OK      {count:>6} rows")
        except duckdb.Error as e:
            print(f"  {table:25s}  FAIL    {e}")
            all_ok = False

    print("=" * 50)
    if all_ok:
        print(f"  All {len(TABLES)} tables exist and are accessible.")
    else:
        print("  SOME TABLES FAILED — see above.")
    close_db()
    print("  Connection closed.")
    return 0 if all_ok else 1


if __name__ == "__main__":
    sys.exit(main())
