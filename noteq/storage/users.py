"""
User Repository - resolves external identities to internal user rows.
"""

from __future__ import annotations

import uuid

from noteq.infrastructure.database import db_transaction, get_db_connection, retry_on_db_lock
from noteq.observability.logging import get_logger
from noteq.storage.models import User, utc_now

logger = get_logger(__name__)


class UserRepository:
    """Repository for the users table."""

    @staticmethod
    @retry_on_db_lock()
    def upsert(
        email: str,
        name: str | None = None,
        image_url: str | None = None,
        provider: str | None = None,
    ) -> User:
        """
        Insert or refresh the user row for an email.

        Existing rows keep their id and created_at; profile fields and the
        sign-in timestamp are overwritten.

        Side Effects:
            - Inserts or updates one row in users
        """
        email = email.strip().lower()
        now = utc_now().isoformat()

        with db_transaction() as conn:
            conn.execute(
                """
                INSERT INTO users (id, email, name, image_url, last_provider, last_sign_in_at, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(email) DO UPDATE SET
                    name = excluded.name,
                    image_url = excluded.image_url,
                    last_provider = excluded.last_provider,
                    last_sign_in_at = excluded.last_sign_in_at
                """,
                (str(uuid.uuid4()), email, name, image_url, provider, now, now),
            )
            row = conn.execute("SELECT * FROM users WHERE email = ?", (email,)).fetchone()

        return User.from_db_row(dict(row))

    @staticmethod
    def get_by_email(email: str) -> User | None:
        with get_db_connection() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE email = ?",
                (email.strip().lower(),),
            ).fetchone()
        return User.from_db_row(dict(row)) if row else None
