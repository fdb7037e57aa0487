"""
Domain models for users, notes, todos, categories and labels.

Rows are stored with ISO-8601 text timestamps and JSON text for list
columns; to_db_dict()/from_db_row() convert between the two shapes.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from noteq.classification.models import ClassificationSource


def utc_now() -> datetime:
    """Return current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def parse_dt(value: str | datetime | None) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    parsed = datetime.fromisoformat(value)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


class User(BaseModel):
    """Internal user row, upserted by email on every request."""

    id: str
    email: str
    name: str | None = None
    image_url: str | None = None
    last_provider: str | None = None
    last_sign_in_at: datetime | None = None
    created_at: datetime = Field(default_factory=utc_now)

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> User:
        return cls(
            id=row["id"],
            email=row["email"],
            name=row.get("name"),
            image_url=row.get("image_url"),
            last_provider=row.get("last_provider"),
            last_sign_in_at=parse_dt(row.get("last_sign_in_at")),
            created_at=parse_dt(row.get("created_at")) or utc_now(),
        )


class Category(BaseModel):
    """Global category (shared by all users)."""

    slug: str
    name: str
    label: str
    color: str

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> Category:
        return cls(slug=row["slug"], name=row["name"], label=row["label"], color=row["color"])


class Label(BaseModel):
    """User-owned label attached to notes and todos."""

    id: str
    name: str
    color: str
    created_at: datetime | None = None

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> Label:
        return cls(
            id=row["id"],
            name=row["name"],
            color=row["color"],
            created_at=parse_dt(row.get("created_at")),
        )


class LabelWithCounts(Label):
    """Label plus how many of the user's notes and todos carry it."""

    note_count: int = 0
    todo_count: int = 0

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> LabelWithCounts:
        return cls(
            id=row["id"],
            name=row["name"],
            color=row["color"],
            created_at=parse_dt(row.get("created_at")),
            note_count=int(row.get("note_count") or 0),
            todo_count=int(row.get("todo_count") or 0),
        )


class NoteCreate(BaseModel):
    """Fields needed to insert a note."""

    model_config = ConfigDict(use_enum_values=True)

    user_id: str
    text: str
    text_html: str | None = None
    image_data: str | None = None
    category_slug: str | None = None
    confidence: float = 0.0
    tags: list[str] = Field(default_factory=list)
    source: ClassificationSource = ClassificationSource.RULES

    @field_validator("text")
    @classmethod
    def text_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("text cannot be empty")
        return v.strip()


class Note(BaseModel):
    """A stored note with its category details and labels."""

    model_config = ConfigDict(use_enum_values=True)

    id: str
    user_id: str
    text: str
    text_html: str | None = None
    image_data: str | None = None
    category_slug: str | None = None
    category_name: str | None = None
    category_label: str | None = None
    category_color: str | None = None
    confidence: float = 0.0
    tags: list[str] = Field(default_factory=list)
    source: ClassificationSource = ClassificationSource.RULES
    labels: list[Label] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)

    def to_db_dict(self) -> dict[str, Any]:
        """Convert to dict for database storage."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "text": self.text,
            "text_html": self.text_html,
            "image_data": self.image_data,
            "category_slug": self.category_slug,
            "confidence": self.confidence,
            "tags": json.dumps(self.tags),
            "source": self.source,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_db_row(cls, row: dict[str, Any], labels: list[Label] | None = None) -> Note:
        """Create Note from a notes row (optionally joined with categories)."""
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            text=row["text"],
            text_html=row.get("text_html"),
            image_data=row.get("image_data"),
            category_slug=row.get("category_slug"),
            category_name=row.get("category_name"),
            category_label=row.get("category_label"),
            category_color=row.get("category_color"),
            confidence=float(row.get("confidence") or 0.0),
            tags=json.loads(row.get("tags") or "[]"),
            source=row.get("source") or ClassificationSource.RULES,
            labels=labels or [],
            created_at=parse_dt(row["created_at"]),
        )


class Todo(BaseModel):
    """A stored todo with its labels."""

    id: str
    user_id: str
    content: str
    is_done: bool = False
    source_note_id: str | None = None
    labels: list[Label] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("content")
    @classmethod
    def content_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("content cannot be empty")
        return v.strip()

    def to_db_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "content": self.content,
            "is_done": int(self.is_done),
            "source_note_id": self.source_note_id,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_db_row(cls, row: dict[str, Any], labels: list[Label] | None = None) -> Todo:
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            content=row["content"],
            is_done=bool(row.get("is_done")),
            source_note_id=row.get("source_note_id"),
            labels=labels or [],
            created_at=parse_dt(row["created_at"]),
        )
