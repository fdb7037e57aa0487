"""
Todo Repository - CRUD operations for the todos table.
"""

from __future__ import annotations

import sqlite3
import uuid
from collections.abc import Sequence

from noteq.config import TODOS_LIST_LIMIT
from noteq.infrastructure.database import (
    db_transaction,
    get_db_connection,
    retry_on_db_lock,
    transaction_scope,
)
from noteq.observability.logging import get_logger
from noteq.storage.labels import LabelRepository
from noteq.storage.models import Todo, utc_now

logger = get_logger(__name__)

_SELECT_TODOS = "SELECT t.id, t.user_id, t.content, t.is_done, t.source_note_id, t.created_at FROM todos t"

# open first, then newest first
_ORDER = " ORDER BY t.is_done ASC, t.created_at DESC, t.rowid DESC"


class TodoRepository:
    """
    Repository for Todo CRUD operations.

    source_note_id is not verified here; callers check note ownership.
    """

    @staticmethod
    def _hydrate(rows) -> list[Todo]:
        row_dicts = [dict(row) for row in rows]
        labels = LabelRepository.for_todos([row["id"] for row in row_dicts])
        return [Todo.from_db_row(row, labels.get(row["id"], [])) for row in row_dicts]

    @staticmethod
    @retry_on_db_lock()
    def create_many(
        user_id: str,
        contents: Sequence[str],
        source_note_id: str | None = None,
        conn: sqlite3.Connection | None = None,
    ) -> list[Todo]:
        """
        Insert several todos in one transaction (the caller's when conn is given).

        Blank contents are skipped.

        Side Effects:
            - Inserts rows into todos table
        """
        todos = [
            Todo(
                id=str(uuid.uuid4()),
                user_id=user_id,
                content=content,
                source_note_id=source_note_id,
                created_at=utc_now(),
            )
            for content in contents
            if content and content.strip()
        ]
        if not todos:
            return []

        with transaction_scope(conn) as tx:
            tx.executemany(
                """
                INSERT INTO todos (id, user_id, content, is_done, source_note_id, created_at)
                VALUES (:id, :user_id, :content, :is_done, :source_note_id, :created_at)
                """,
                [todo.to_db_dict() for todo in todos],
            )

        logger.debug("Created %d todos for user %s", len(todos), user_id)
        return todos

    @staticmethod
    def create(user_id: str, content: str, source_note_id: str | None = None) -> Todo:
        created = TodoRepository.create_many(user_id, [content], source_note_id)
        if not created:
            raise ValueError("content cannot be empty")
        return created[0]

    @staticmethod
    def get(user_id: str, todo_id: str) -> Todo | None:
        with get_db_connection() as conn:
            rows = conn.execute(
                _SELECT_TODOS + " WHERE t.id = ? AND t.user_id = ?",
                (todo_id, user_id),
            ).fetchall()
        todos = TodoRepository._hydrate(rows)
        return todos[0] if todos else None

    @staticmethod
    def exists(user_id: str, todo_id: str) -> bool:
        with get_db_connection() as conn:
            row = conn.execute(
                "SELECT 1 FROM todos WHERE id = ? AND user_id = ?",
                (todo_id, user_id),
            ).fetchone()
        return row is not None

    @staticmethod
    def list_by_user(user_id: str, limit: int = TODOS_LIST_LIMIT) -> list[Todo]:
        """The user's todos: open first, newest first."""
        with get_db_connection() as conn:
            rows = conn.execute(
                _SELECT_TODOS + " WHERE t.user_id = ?" + _ORDER + " LIMIT ?",
                (user_id, limit),
            ).fetchall()
        return TodoRepository._hydrate(rows)

    @staticmethod
    def list_unlabeled(user_id: str, limit: int) -> list[Todo]:
        """The user's todos that carry no label, newest first (no label hydration)."""
        with get_db_connection() as conn:
            rows = conn.execute(
                _SELECT_TODOS
                + """
                WHERE t.user_id = ?
                  AND NOT EXISTS (SELECT 1 FROM todo_labels tl WHERE tl.todo_id = t.id)
                ORDER BY t.created_at DESC, t.rowid DESC
                LIMIT ?
                """,
                (user_id, limit),
            ).fetchall()
        return [Todo.from_db_row(dict(row)) for row in rows]

    @staticmethod
    def list_by_label(user_id: str, label_id: str, limit: int) -> list[Todo]:
        with get_db_connection() as conn:
            rows = conn.execute(
                _SELECT_TODOS
                + " JOIN todo_labels tl ON tl.todo_id = t.id"
                " WHERE tl.label_id = ? AND t.user_id = ?" + _ORDER + " LIMIT ?",
                (label_id, user_id, limit),
            ).fetchall()
        return TodoRepository._hydrate(rows)

    @staticmethod
    @retry_on_db_lock()
    def set_done(user_id: str, todo_id: str, is_done: bool) -> Todo | None:
        """
        Toggle a todo's completion flag.

        Returns:
            Updated Todo, or None if the user has no such todo
        """
        with db_transaction() as conn:
            cursor = conn.execute(
                "UPDATE todos SET is_done = ? WHERE id = ? AND user_id = ?",
                (int(is_done), todo_id, user_id),
            )
            updated = cursor.rowcount

        if not updated:
            return None
        return TodoRepository.get(user_id, todo_id)

    @staticmethod
    @retry_on_db_lock()
    def delete(user_id: str, todo_id: str) -> bool:
        with db_transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM todos WHERE id = ? AND user_id = ?",
                (todo_id, user_id),
            )
            return cursor.rowcount > 0
