"""
Category Repository - the global categories table.

The uncategorized sentinel is never updated or deleted here; callers get a
ValueError instead.
"""

from __future__ import annotations

import sqlite3

from noteq.infrastructure.database import db_transaction, get_db_connection, retry_on_db_lock
from noteq.observability.logging import get_logger
from noteq.storage.models import Category
from noteq.utils.validators import SENTINEL_CATEGORY

logger = get_logger(__name__)


class CategoryRepository:
    """Repository for Category CRUD operations."""

    @staticmethod
    def list_all() -> list[Category]:
        """All categories, uncategorized last, then by label and name."""
        with get_db_connection() as conn:
            rows = conn.execute(
                """
                SELECT slug, name, label, color FROM categories
                ORDER BY CASE WHEN slug = ? THEN 1 ELSE 0 END, label ASC, name ASC
                """,
                (SENTINEL_CATEGORY,),
            ).fetchall()
        return [Category.from_db_row(dict(row)) for row in rows]

    @staticmethod
    def list_for_classification() -> list[Category]:
        """All categories in creation order (defaults first) for keyword scoring."""
        with get_db_connection() as conn:
            rows = conn.execute(
                "SELECT slug, name, label, color FROM categories ORDER BY rowid ASC"
            ).fetchall()
        return [Category.from_db_row(dict(row)) for row in rows]

    @staticmethod
    def get(slug: str) -> Category | None:
        with get_db_connection() as conn:
            row = conn.execute(
                "SELECT slug, name, label, color FROM categories WHERE slug = ?",
                (slug,),
            ).fetchone()
        return Category.from_db_row(dict(row)) if row else None

    @staticmethod
    @retry_on_db_lock()
    def create(category: Category) -> Category:
        """
        Insert a category.

        Raises:
            ValueError: If the slug is the sentinel or already taken
        """
        if category.slug == SENTINEL_CATEGORY:
            raise ValueError("Invalid category name")

        try:
            with db_transaction() as conn:
                conn.execute(
                    "INSERT INTO categories (slug, name, label, color) VALUES (?, ?, ?, ?)",
                    (category.slug, category.name, category.label, category.color),
                )
        except sqlite3.IntegrityError:
            raise ValueError("Category already exists") from None

        logger.info("Created category %s", category.slug)
        return category

    @staticmethod
    @retry_on_db_lock()
    def update(slug: str, name: str, label: str, color: str) -> Category | None:
        """
        Edit a category's display fields (the slug never changes).

        Returns:
            Updated Category or None if it doesn't exist

        Raises:
            ValueError: For the sentinel category
        """
        if slug == SENTINEL_CATEGORY:
            raise ValueError("Cannot edit uncategorized")

        with db_transaction() as conn:
            cursor = conn.execute(
                "UPDATE categories SET name = ?, label = ?, color = ? WHERE slug = ?",
                (name, label, color, slug),
            )
            updated = cursor.rowcount

        if not updated:
            return None
        return CategoryRepository.get(slug)

    @staticmethod
    @retry_on_db_lock()
    def delete(slug: str) -> int | None:
        """
        Delete a category, moving its notes to uncategorized.

        Returns:
            Number of notes moved, or None if the category doesn't exist

        Raises:
            ValueError: For the sentinel category

        Side Effects:
            - Updates notes.category_slug for every affected note (all users)
            - Deletes the categories row
        """
        if slug == SENTINEL_CATEGORY:
            raise ValueError("Cannot delete uncategorized")

        with db_transaction() as conn:
            if conn.execute("SELECT 1 FROM categories WHERE slug = ?", (slug,)).fetchone() is None:
                return None
            moved = conn.execute(
                "UPDATE notes SET category_slug = ? WHERE category_slug = ?",
                (SENTINEL_CATEGORY, slug),
            ).rowcount
            conn.execute("DELETE FROM categories WHERE slug = ?", (slug,))

        logger.info("Deleted category %s (%d notes moved to %s)", slug, moved, SENTINEL_CATEGORY)
        return moved
