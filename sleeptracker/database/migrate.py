"""Apply schema to the sleep history SQLite database."""

from __future__ import annotations

import sqlite3
import sys
from pathlib import Path

from sleeptracker.config.settings import resolve_sleep_db_path
from sleeptracker.database.errors import StorageFault

NIGHTS_TABLE = "daily_sleep_quality_table"

_SCHEMA_SQL = f"""
CREATE TABLE IF NOT EXISTS {NIGHTS_TABLE} (
  nightId INTEGER PRIMARY KEY AUTOINCREMENT,
  start_time_milli INTEGER NOT NULL,
  end_time_milli INTEGER NOT NULL,
  quality_rating INTEGER NOT NULL DEFAULT -1
);
"""


def apply_schema(db_path: Path | str) -> None:
    path = Path(db_path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with sqlite3.connect(path) as conn:
            conn.executescript(_SCHEMA_SQL)
            _ensure_night_columns(conn)
    except (OSError, sqlite3.Error) as exc:
        raise StorageFault("apply_schema", str(exc)) from exc


def main() -> None:
    db_path = Path(sys.argv[1]) if len(sys.argv) > 1 else resolve_sleep_db_path()
    apply_schema(db_path)
    print(f"Applied schema to {db_path}")


def _ensure_night_columns(conn: sqlite3.Connection) -> None:
    # Files written before quality ratings existed lack the column.
    columns = {
        "quality_rating": "INTEGER NOT NULL DEFAULT -1",
    }
    existing = {row[1] for row in conn.execute(f"PRAGMA table_info({NIGHTS_TABLE})")}
    for name, definition in columns.items():
        if name in existing:
            continue
        conn.execute(f"ALTER TABLE {NIGHTS_TABLE} ADD COLUMN {name} {definition}")


if __name__ == "__main__":
    main()
