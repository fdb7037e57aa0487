"""
Label Repository - labels table and the note_labels/todo_labels join tables.

Label names are unique per user ignoring case (unique index on
user_id, lower(name)).
"""

from __future__ import annotations

import sqlite3
import uuid
from collections.abc import Sequence

from noteq.classification.labeler import normalize_label_name, pick_label_color
from noteq.infrastructure.database import (
    db_transaction,
    get_db_connection,
    retry_on_db_lock,
    transaction_scope,
)
from noteq.observability.logging import get_logger
from noteq.observability.telemetry import counter
from noteq.storage.models import Label, LabelWithCounts, utc_now
from noteq.utils.validators import is_hex_color

logger = get_logger(__name__)


class LabelRepository:
    """
    Repository for user labels and their links to notes and todos.

    Every query is scoped by user_id.
    """

    @staticmethod
    def list_by_user(user_id: str) -> list[Label]:
        """All labels of a user, by name."""
        with get_db_connection() as conn:
            rows = conn.execute(
                "SELECT id, name, color, created_at FROM labels WHERE user_id = ? ORDER BY name ASC",
                (user_id,),
            ).fetchall()
        return [Label.from_db_row(dict(row)) for row in rows]

    @staticmethod
    def list_with_counts(user_id: str) -> list[LabelWithCounts]:
        """
        All labels of a user with how many of the user's notes/todos carry each.
        """
        with get_db_connection() as conn:
            rows = conn.execute(
                """
                SELECT l.id, l.name, l.color, l.created_at,
                       (SELECT COUNT(*) FROM note_labels nl
                          JOIN notes n ON n.id = nl.note_id
                         WHERE nl.label_id = l.id AND n.user_id = l.user_id) AS note_count,
                       (SELECT COUNT(*) FROM todo_labels tl
                          JOIN todos t ON t.id = tl.todo_id
                         WHERE tl.label_id = l.id AND t.user_id = l.user_id) AS todo_count
                FROM labels l
                WHERE l.user_id = ?
                ORDER BY l.name ASC
                """,
                (user_id,),
            ).fetchall()
        return [LabelWithCounts.from_db_row(dict(row)) for row in rows]

    @staticmethod
    def get(user_id: str, label_id: str) -> Label | None:
        with get_db_connection() as conn:
            row = conn.execute(
                "SELECT id, name, color, created_at FROM labels WHERE id = ? AND user_id = ?",
                (label_id, user_id),
            ).fetchone()
        return Label.from_db_row(dict(row)) if row else None

    @staticmethod
    def find_by_name(
        user_id: str, name: str, conn: sqlite3.Connection | None = None
    ) -> Label | None:
        """Case-insensitive lookup of a label by name (on conn when given)."""
        if conn is None:
            with get_db_connection() as pooled:
                return LabelRepository.find_by_name(user_id, name, pooled)

        row = conn.execute(
            """
            SELECT id, name, color, created_at FROM labels
            WHERE user_id = ? AND lower(name) = lower(?)
            LIMIT 1
            """,
            (user_id, name),
        ).fetchone()
        return Label.from_db_row(dict(row)) if row else None

    @staticmethod
    @retry_on_db_lock()
    def upsert(
        user_id: str,
        name: str,
        color: str | None = None,
        conn: sqlite3.Connection | None = None,
    ) -> Label | None:
        """
        Return the user's label with this name, creating it if needed.

        The name is normalized first; an invalid name returns None. A new
        label takes color when it is a valid #RRGGBB, otherwise the palette
        colour for the name. A concurrent insert of the same name is
        resolved by re-reading the row that won. With conn, the lookup and
        insert run inside the caller's transaction.

        Side Effects:
            - May insert one row into labels
        """
        normalized = normalize_label_name(name)
        if not normalized:
            return None

        existing = LabelRepository.find_by_name(user_id, normalized, conn)
        if existing:
            return existing

        label = Label(
            id=str(uuid.uuid4()),
            name=normalized,
            color=color if is_hex_color(color) else pick_label_color(normalized),
            created_at=utc_now(),
        )

        try:
            with transaction_scope(conn) as tx:
                tx.execute(
                    "INSERT INTO labels (id, user_id, name, color, created_at) VALUES (?, ?, ?, ?, ?)",
                    (label.id, user_id, label.name, label.color, label.created_at.isoformat()),
                )
        except sqlite3.IntegrityError:
            counter("labels.upsert.conflict")
            logger.info("Label insert lost a race for user %s, re-reading", user_id)
            return LabelRepository.find_by_name(user_id, normalized, conn)

        counter("labels.created")
        return label

    @staticmethod
    @retry_on_db_lock()
    def update(user_id: str, label_id: str, name: str, color: str) -> Label | None:
        """
        Rename and recolor a label.

        Returns:
            Updated Label, or None if the label doesn't belong to the user

        Raises:
            ValueError: If the name is invalid or another label already uses it
        """
        normalized = normalize_label_name(name)
        if not normalized:
            raise ValueError("Invalid label name")

        try:
            with db_transaction() as conn:
                cursor = conn.execute(
                    "UPDATE labels SET name = ?, color = ? WHERE id = ? AND user_id = ?",
                    (normalized, color, label_id, user_id),
                )
                updated = cursor.rowcount
        except sqlite3.IntegrityError:
            raise ValueError("A label with that name already exists") from None

        if not updated:
            return None
        return LabelRepository.get(user_id, label_id)

    @staticmethod
    @retry_on_db_lock()
    def delete(user_id: str, label_id: str) -> bool:
        """
        Delete a label; join rows go with it (ON DELETE CASCADE).
        """
        with db_transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM labels WHERE id = ? AND user_id = ?",
                (label_id, user_id),
            )
            return cursor.rowcount > 0

    # ------------------------------------------------------------------
    # Links
    # ------------------------------------------------------------------

    @staticmethod
    @retry_on_db_lock()
    def attach_to_note(
        note_id: str, label_id: str, conn: sqlite3.Connection | None = None
    ) -> bool:
        """Link a label to a note. Returns False when the link already existed."""
        with transaction_scope(conn) as tx:
            cursor = tx.execute(
                "INSERT OR IGNORE INTO note_labels (note_id, label_id) VALUES (?, ?)",
                (note_id, label_id),
            )
            return cursor.rowcount > 0

    @staticmethod
    @retry_on_db_lock()
    def detach_from_note(user_id: str, note_id: str, label_id: str) -> bool:
        with db_transaction() as conn:
            cursor = conn.execute(
                """
                DELETE FROM note_labels
                WHERE note_id = ? AND label_id = ?
                  AND label_id IN (SELECT id FROM labels WHERE user_id = ?)
                """,
                (note_id, label_id, user_id),
            )
            return cursor.rowcount > 0

    @staticmethod
    @retry_on_db_lock()
    def attach_to_todo(
        todo_id: str, label_id: str, conn: sqlite3.Connection | None = None
    ) -> bool:
        """Link a label to a todo. Returns False when the link already existed."""
        with transaction_scope(conn) as tx:
            cursor = tx.execute(
                "INSERT OR IGNORE INTO todo_labels (todo_id, label_id) VALUES (?, ?)",
                (todo_id, label_id),
            )
            return cursor.rowcount > 0

    @staticmethod
    @retry_on_db_lock()
    def detach_from_todo(user_id: str, todo_id: str, label_id: str) -> bool:
        with db_transaction() as conn:
            cursor = conn.execute(
                """
                DELETE FROM todo_labels
                WHERE todo_id = ? AND label_id = ?
                  AND label_id IN (SELECT id FROM labels WHERE user_id = ?)
                """,
                (todo_id, label_id, user_id),
            )
            return cursor.rowcount > 0

    @staticmethod
    def for_notes(note_ids: Sequence[str]) -> dict[str, list[Label]]:
        """note_id -> labels (by name) for a batch of notes."""
        return LabelRepository._labels_for("note_labels", "note_id", note_ids)

    @staticmethod
    def for_todos(todo_ids: Sequence[str]) -> dict[str, list[Label]]:
        """todo_id -> labels (by name) for a batch of todos."""
        return LabelRepository._labels_for("todo_labels", "todo_id", todo_ids)

    @staticmethod
    def _labels_for(join_table: str, key: str, ids: Sequence[str]) -> dict[str, list[Label]]:
        result: dict[str, list[Label]] = {item_id: [] for item_id in ids}
        if not ids:
            return result

        placeholders = ",".join("?" * len(ids))
        with get_db_connection() as conn:
            rows = conn.execute(
                f"""
                SELECT j.{key} AS item_id, l.id, l.name, l.color, l.created_at
                FROM {join_table} j
                JOIN labels l ON l.id = j.label_id
                WHERE j.{key} IN ({placeholders})
                ORDER BY l.name ASC
                """,
                tuple(ids),
            ).fetchall()

        for row in rows:
            result.setdefault(row["item_id"], []).append(Label.from_db_row(dict(row)))
        return result
