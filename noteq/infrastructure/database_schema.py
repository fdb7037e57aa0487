"""
Database schema initialization for NoteQ.

Contains the SQL schema, the default category seed and schema validation,
kept apart from database.py so the pool module stays focused on connections.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

from noteq.observability.logging import get_logger

logger = get_logger(__name__)

# (slug, name, label, color) in priority order; uncategorized is the sentinel
DEFAULT_CATEGORIES: list[tuple[str, str, str, str]] = [
    ("grocery", "Grocery", "Groceries", "#16a34a"),
    ("tasks", "Tasks", "Tasks", "#2563eb"),
    ("reminders", "Reminders", "Reminders", "#f59e0b"),
    ("ideas", "Ideas", "Ideas", "#a855f7"),
    ("work", "Work", "Work", "#0f766e"),
    ("health", "Health", "Health", "#dc2626"),
    ("finance", "Finance", "Finance", "#ca8a04"),
    ("uncategorized", "Uncategorized", "Other", "#475569"),
]


def init_database(db_path: Path) -> None:
    """
    Initialize database with schema (idempotent)

    Safe to run multiple times - uses CREATE TABLE IF NOT EXISTS and
    INSERT OR IGNORE for the default categories.

    Args:
        db_path: Path to the database file

    Side Effects:
    - Creates the parent data/ directory if needed
    - Creates tables and indexes in the database if they don't exist
    - Seeds default categories (existing rows are left untouched)
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    try:
        conn.execute("PRAGMA foreign_keys=ON")
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY,
                email TEXT NOT NULL UNIQUE,
                name TEXT,
                image_url TEXT,
                last_provider TEXT,
                last_sign_in_at TEXT,
                created_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS categories (
                slug TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                label TEXT NOT NULL,
                color TEXT NOT NULL DEFAULT '#475569',
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );

            CREATE TABLE IF NOT EXISTS notes (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                text TEXT NOT NULL,
                text_html TEXT,
                image_data TEXT,
                category_slug TEXT REFERENCES categories(slug),
                confidence REAL NOT NULL DEFAULT 0,
                tags TEXT NOT NULL DEFAULT '[]',
                source TEXT NOT NULL DEFAULT 'rules' CHECK (source IN ('rules', 'ai')),
                created_at TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_notes_user_created
                ON notes(user_id, created_at DESC);

            CREATE TABLE IF NOT EXISTS todos (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                content TEXT NOT NULL,
                is_done INTEGER NOT NULL DEFAULT 0,
                source_note_id TEXT REFERENCES notes(id) ON DELETE SET NULL,
                created_at TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_todos_user_done_created
                ON todos(user_id, is_done, created_at DESC);

            CREATE TABLE IF NOT EXISTS labels (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                name TEXT NOT NULL,
                color TEXT NOT NULL DEFAULT '#0ea5e9',
                created_at TEXT NOT NULL
            );

            CREATE UNIQUE INDEX IF NOT EXISTS idx_labels_user_lower_name
                ON labels(user_id, lower(name));

            CREATE TABLE IF NOT EXISTS note_labels (
                note_id TEXT NOT NULL REFERENCES notes(id) ON DELETE CASCADE,
                label_id TEXT NOT NULL REFERENCES labels(id) ON DELETE CASCADE,
                PRIMARY KEY (note_id, label_id)
            );

            CREATE INDEX IF NOT EXISTS idx_note_labels_label ON note_labels(label_id);

            CREATE TABLE IF NOT EXISTS todo_labels (
                todo_id TEXT NOT NULL REFERENCES todos(id) ON DELETE CASCADE,
                label_id TEXT NOT NULL REFERENCES labels(id) ON DELETE CASCADE,
                PRIMARY KEY (todo_id, label_id)
            );

            CREATE INDEX IF NOT EXISTS idx_todo_labels_label ON todo_labels(label_id);
        """)

        conn.executemany(
            "INSERT OR IGNORE INTO categories (slug, name, label, color) VALUES (?, ?, ?, ?)",
            DEFAULT_CATEGORIES,
        )
        conn.commit()
    finally:
        conn.close()

    logger.info("Database initialized at %s", db_path)


def validate_schema(conn: sqlite3.Connection) -> bool:
    """
    Validate database has expected schema

    Args:
        conn: Active database connection

    Returns:
        True if valid

    Raises:
        ValueError: If tables or columns are missing
    """
    required_tables = {
        "users": ["id", "email", "last_sign_in_at"],
        "categories": ["slug", "name", "label", "color"],
        "notes": ["id", "user_id", "text", "category_slug", "confidence", "tags", "source"],
        "todos": ["id", "user_id", "content", "is_done", "source_note_id"],
        "labels": ["id", "user_id", "name", "color"],
        "note_labels": ["note_id", "label_id"],
        "todo_labels": ["todo_id", "label_id"],
    }

    cursor = conn.cursor()

    cursor.execute("SELECT name FROM sqlite_master WHERE type='table'")
    existing_tables = {row[0] for row in cursor.fetchall()}

    missing_tables = set(required_tables.keys()) - existing_tables
    if missing_tables:
        raise ValueError(f"Database missing tables: {missing_tables}")

    for table, required_cols in required_tables.items():
        # Identifiers can't be parameterized; names come from the dict above
        if not table.replace("_", "").isalnum():
            raise ValueError(f"Invalid table name: {table}")

        cursor.execute(f"PRAGMA table_info({table})")
        existing_cols = {row[1] for row in cursor.fetchall()}

        missing_cols = set(required_cols) - existing_cols
        if missing_cols:
            raise ValueError(f"Table '{table}' missing columns: {missing_cols}")

    return True
