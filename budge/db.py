from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

from . import config

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA synchronous=NORMAL;

CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    email TEXT NOT NULL UNIQUE,
    monthly_budget REAL NOT NULL,
    currency TEXT,
    is_pro INTEGER NOT NULL DEFAULT 0,
    api_token_hash TEXT UNIQUE,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS categories (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL REFERENCES users (id),
    name TEXT NOT NULL,
    color TEXT NOT NULL,
    type TEXT NOT NULL,
    budget REAL,
    icon TEXT,
    is_default INTEGER NOT NULL DEFAULT 0,
    created_at TEXT,
    updated_at TEXT
);

CREATE UNIQUE INDEX IF NOT EXISTS ux_category_owner_name_type
ON categories (user_id, name, type);

CREATE TABLE IF NOT EXISTS transactions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL REFERENCES users (id),
    amount REAL NOT NULL,
    description TEXT NOT NULL,
    category_id INTEGER NOT NULL REFERENCES categories (id),
    type TEXT NOT NULL,
    date TEXT NOT NULL,
    notes TEXT,
    is_recurring INTEGER NOT NULL DEFAULT 0,
    recurrence_frequency TEXT,
    recurrence_interval INTEGER,
    recurrence_end_date TEXT,
    created_at TEXT,
    updated_at TEXT
);

CREATE INDEX IF NOT EXISTS ix_txn_user_date ON transactions (user_id, date);
CREATE INDEX IF NOT EXISTS ix_txn_user_category ON transactions (user_id, category_id);
CREATE INDEX IF NOT EXISTS ix_txn_user_type ON transactions (user_id, type);
"""

# Columns added after the first schema shipped: (table, column, type)
MIGRATION_COLUMNS: List[Tuple[str, str, str]] = [
    ("transactions", "tags", "TEXT"),
    ("users", "share_analytics", "INTEGER"),
    ("users", "share_marketing", "INTEGER"),
]

PathLike = Union[str, Path]


def resolve_path(db_path: Optional[PathLike] = None) -> Path:
    return Path(db_path) if db_path is not None else config.DB_PATH


@contextmanager
def connect(db_path: Optional[PathLike] = None) -> Iterator[sqlite3.Connection]:
    target = resolve_path(db_path)
    target.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(target))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
    finally:
        conn.close()


def init_db(db_path: Optional[PathLike] = None) -> None:
    with connect(db_path) as conn:
        conn.executescript(SCHEMA_SQL)
        conn.commit()
        _migrate_database(conn)


def _migrate_database(conn: sqlite3.Connection) -> None:
    """Add new columns to an existing database if they don't exist."""
    cursor = conn.cursor()
    for table, column_name, column_type in MIGRATION_COLUMNS:
        cursor.execute(f"PRAGMA table_info({table})")
        existing_columns = [row[1] for row in cursor.fetchall()]
        if column_name in existing_columns:
            continue
        try:
            cursor.execute(f"ALTER TABLE {table} ADD COLUMN {column_name} {column_type}")
            logger.info("Added column %s to %s table", column_name, table)
        except sqlite3.OperationalError as e:
            if "duplicate column name" not in str(e):
                raise
    conn.commit()
