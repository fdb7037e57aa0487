"""
Note Repository - CRUD operations for the notes table.
"""

from __future__ import annotations

import sqlite3
import uuid

from noteq.config import NOTES_LIST_LIMIT
from noteq.infrastructure.database import (
    db_transaction,
    get_db_connection,
    retry_on_db_lock,
    transaction_scope,
)
from noteq.observability.logging import get_logger
from noteq.storage.labels import LabelRepository
from noteq.storage.models import Note, NoteCreate, utc_now

logger = get_logger(__name__)

# Notes keep a NULL category under the labels policy, hence the LEFT JOIN
_SELECT_NOTES = """
    SELECT n.id, n.user_id, n.text, n.text_html, n.image_data, n.category_slug,
           n.confidence, n.tags, n.source, n.created_at,
           c.name AS category_name, c.label AS category_label, c.color AS category_color
    FROM notes n
    LEFT JOIN categories c ON c.slug = n.category_slug
"""


class NoteRepository:
    """
    Repository for Note CRUD operations.

    Reads return notes with category details and labels attached.
    """

    @staticmethod
    def _hydrate(rows) -> list[Note]:
        row_dicts = [dict(row) for row in rows]
        labels = LabelRepository.for_notes([row["id"] for row in row_dicts])
        return [Note.from_db_row(row, labels.get(row["id"], [])) for row in row_dicts]

    @staticmethod
    @retry_on_db_lock()
    def create(note: NoteCreate, conn: sqlite3.Connection | None = None) -> Note:
        """
        Insert a note.

        Returns:
            The created Note (without category details or labels)

        Side Effects:
            - Inserts row into notes table
        """
        created = Note(
            id=str(uuid.uuid4()),
            user_id=note.user_id,
            text=note.text,
            text_html=note.text_html or None,
            image_data=note.image_data or None,
            category_slug=note.category_slug,
            confidence=note.confidence,
            tags=note.tags,
            source=note.source,
            created_at=utc_now(),
        )

        with transaction_scope(conn) as tx:
            tx.execute(
                """
                INSERT INTO notes (
                    id, user_id, text, text_html, image_data, category_slug,
                    confidence, tags, source, created_at
                ) VALUES (
                    :id, :user_id, :text, :text_html, :image_data, :category_slug,
                    :confidence, :tags, :source, :created_at
                )
                """,
                created.to_db_dict(),
            )

        logger.debug("Created note %s for user %s", created.id, note.user_id)
        return created

    @staticmethod
    def get(user_id: str, note_id: str) -> Note | None:
        """Get one of the user's notes, or None."""
        with get_db_connection() as conn:
            rows = conn.execute(
                _SELECT_NOTES + " WHERE n.id = ? AND n.user_id = ?",
                (note_id, user_id),
            ).fetchall()
        notes = NoteRepository._hydrate(rows)
        return notes[0] if notes else None

    @staticmethod
    def exists(user_id: str, note_id: str) -> bool:
        with get_db_connection() as conn:
            row = conn.execute(
                "SELECT 1 FROM notes WHERE id = ? AND user_id = ?",
                (note_id, user_id),
            ).fetchone()
        return row is not None

    @staticmethod
    def list_by_user(user_id: str, limit: int = NOTES_LIST_LIMIT) -> list[Note]:
        """The user's notes, newest first."""
        with get_db_connection() as conn:
            rows = conn.execute(
                _SELECT_NOTES
                + " WHERE n.user_id = ? ORDER BY n.created_at DESC, n.rowid DESC LIMIT ?",
                (user_id, limit),
            ).fetchall()
        return NoteRepository._hydrate(rows)

    @staticmethod
    def list_by_ids(user_id: str, note_ids: list[str]) -> list[Note]:
        """The given notes (user-scoped), newest first."""
        if not note_ids:
            return []
        placeholders = ",".join("?" * len(note_ids))
        with get_db_connection() as conn:
            rows = conn.execute(
                _SELECT_NOTES
                + f" WHERE n.user_id = ? AND n.id IN ({placeholders})"
                " ORDER BY n.created_at DESC, n.rowid DESC",
                (user_id, *note_ids),
            ).fetchall()
        return NoteRepository._hydrate(rows)

    @staticmethod
    def list_unlabeled(user_id: str, limit: int) -> list[Note]:
        """The user's notes that carry no label, newest first (no label hydration)."""
        with get_db_connection() as conn:
            rows = conn.execute(
                _SELECT_NOTES
                + """
                WHERE n.user_id = ?
                  AND NOT EXISTS (SELECT 1 FROM note_labels nl WHERE nl.note_id = n.id)
                ORDER BY n.created_at DESC, n.rowid DESC
                LIMIT ?
                """,
                (user_id, limit),
            ).fetchall()
        return [Note.from_db_row(dict(row)) for row in rows]

    @staticmethod
    def list_by_label(user_id: str, label_id: str, limit: int) -> list[Note]:
        """The user's notes carrying a label, newest first."""
        with get_db_connection() as conn:
            rows = conn.execute(
                _SELECT_NOTES
                + """
                JOIN note_labels nl ON nl.note_id = n.id
                WHERE nl.label_id = ? AND n.user_id = ?
                ORDER BY n.created_at DESC, n.rowid DESC
                LIMIT ?
                """,
                (label_id, user_id, limit),
            ).fetchall()
        return NoteRepository._hydrate(rows)

    @staticmethod
    @retry_on_db_lock()
    def update_category(user_id: str, note_id: str, category_slug: str) -> Note | None:
        """
        Reassign a note's category.

        Returns:
            Updated Note, or None if the user has no such note
        """
        with db_transaction() as conn:
            cursor = conn.execute(
                "UPDATE notes SET category_slug = ? WHERE id = ? AND user_id = ?",
                (category_slug, note_id, user_id),
            )
            updated = cursor.rowcount

        if not updated:
            return None
        return NoteRepository.get(user_id, note_id)

    @staticmethod
    @retry_on_db_lock()
    def delete(user_id: str, note_id: str) -> bool:
        """
        Delete a note.

        Side Effects:
            - Removes its note_labels rows (cascade)
            - Sets source_note_id to NULL on todos extracted from it
        """
        with db_transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM notes WHERE id = ? AND user_id = ?",
                (note_id, user_id),
            )
            deleted = cursor.rowcount > 0

        if deleted:
            logger.info("Deleted note %s for user %s", note_id, user_id)
        return deleted
