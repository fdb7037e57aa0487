"""
Response models shared by the API routes.

Request models live next to the route that accepts them.
"""

from __future__ import annotations

from pydantic import BaseModel

from noteq.storage import Category, Label, LabelWithCounts, Note, Todo


class LabelResponse(BaseModel):
    id: str
    name: str
    color: str

    @classmethod
    def from_label(cls, label: Label) -> LabelResponse:
        return cls(id=label.id, name=label.name, color=label.color)


class LabelWithCountsResponse(LabelResponse):
    note_count: int
    todo_count: int

    @classmethod
    def from_label(cls, label: LabelWithCounts) -> LabelWithCountsResponse:
        return cls(
            id=label.id,
            name=label.name,
            color=label.color,
            note_count=label.note_count,
            todo_count=label.todo_count,
        )


class CategoryResponse(BaseModel):
    slug: str
    name: str
    label: str
    color: str

    @classmethod
    def from_category(cls, category: Category) -> CategoryResponse:
        return cls(
            slug=category.slug,
            name=category.name,
            label=category.label,
            color=category.color,
        )


class NoteResponse(BaseModel):
    """API response for a single note."""

    id: str
    text: str
    text_html: str | None
    image_data: str | None
    category_slug: str | None
    category_name: str | None
    category_label: str | None
    category_color: str | None
    confidence: float
    tags: list[str]
    source: str
    labels: list[LabelResponse]
    created_at: str

    @classmethod
    def from_note(cls, note: Note) -> NoteResponse:
        return cls(
            id=note.id,
            text=note.text,
            text_html=note.text_html,
            image_data=note.image_data,
            category_slug=note.category_slug,
            category_name=note.category_name,
            category_label=note.category_label,
            category_color=note.category_color,
            confidence=note.confidence,
            tags=note.tags,
            source=note.source if isinstance(note.source, str) else note.source.value,
            labels=[LabelResponse.from_label(label) for label in note.labels],
            created_at=note.created_at.isoformat(),
        )


class TodoResponse(BaseModel):
    """API response for a single todo."""

    id: str
    content: str
    is_done: bool
    source_note_id: str | None
    labels: list[LabelResponse]
    created_at: str

    @classmethod
    def from_todo(cls, todo: Todo) -> TodoResponse:
        return cls(
            id=todo.id,
            content=todo.content,
            is_done=todo.is_done,
            source_note_id=todo.source_note_id,
            labels=[LabelResponse.from_label(label) for label in todo.labels],
            created_at=todo.created_at.isoformat(),
        )


class LabelsResponse(BaseModel):
    """Labels currently attached to a note or todo."""

    labels: list[LabelResponse]
