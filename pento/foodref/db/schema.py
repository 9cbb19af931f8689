"""Database schema definitions and migration helpers."""

from __future__ import annotations

import sqlite3
from pathlib import Path

_SCHEMA_VERSION = 1

_DDL = """
CREATE TABLE IF NOT EXISTS food_references (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    food_group TEXT NOT NULL,
    unit_type TEXT NOT NULL,
    shelf_life_pantry_days INTEGER NOT NULL DEFAULT 0,
    shelf_life_fridge_days INTEGER NOT NULL DEFAULT 0,
    shelf_life_freezer_days INTEGER NOT NULL DEFAULT 0,
    barcode TEXT,
    brand TEXT,
    image_url TEXT,
    source_tag TEXT,
    is_deleted INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
    updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
    CHECK (food_group != 'MixedDishes' OR unit_type = 'Count'),
    CHECK (shelf_life_pantry_days >= 0
           AND shelf_life_fridge_days >= 0
           AND shelf_life_freezer_days >= 0)
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_food_references_barcode
    ON food_references(barcode) WHERE barcode IS NOT NULL AND is_deleted = 0;
CREATE INDEX IF NOT EXISTS idx_food_references_deleted
    ON food_references(is_deleted);

CREATE TABLE IF NOT EXISTS user_entitlements (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    feature_code TEXT NOT NULL,
    quota INTEGER,
    usage_count INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
    UNIQUE (user_id, feature_code)
);

CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER NOT NULL
);
"""


def ensure_schema(db_path: str | Path) -> sqlite3.Connection:
    """Open (or create) the database and ensure the schema is up to date.

    Args:
        db_path: Path to the SQLite database file.

    Returns:
        An open sqlite3.Connection with the schema applied.
    """
    db_path = Path(db_path).expanduser()
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")

    try:
        row = conn.execute("SELECT version FROM schema_version").fetchone()
        current_version = row["version"] if row else 0
    except sqlite3.OperationalError:
        current_version = 0

    if current_version < _SCHEMA_VERSION:
        conn.executescript(_DDL)
        conn.execute("DELETE FROM schema_version")
        conn.execute(
            "INSERT INTO schema_version (version) VALUES (?)",
            (_SCHEMA_VERSION,),
        )
        conn.commit()

    return conn
