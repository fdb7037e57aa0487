"""
Notes API endpoints.

Capture free text into notes and todos, reassign categories, and manage
the labels on a note.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field

from noteq.api.errors import InternalError, NotFound, ValidationFailed
from noteq.api.middleware.user_auth import get_current_user_id
from noteq.api.schemas import LabelResponse, LabelsResponse, NoteResponse, TodoResponse
from noteq.capture.service import (
    CaptureService,
    InvalidCaptureError,
    NoteNotFoundError,
    get_capture_service,
)
from noteq.config import (
    NAME_MAX_CHARS,
    NOTE_HTML_MAX_CHARS,
    NOTE_IMAGE_MAX_CHARS,
    NOTE_TEXT_MAX_CHARS,
)
from noteq.observability.logging import get_logger
from noteq.storage import CategoryRepository, LabelRepository, NoteRepository
from noteq.utils.error_sanitizer import sanitize_error_message

router = APIRouter(prefix="/api/notes", tags=["notes"])
logger = get_logger(__name__)


# ============================================================================
# Request/Response Models
# ============================================================================


class CreateNoteRequest(BaseModel):
    """Capture request as sent by the web client."""

    model_config = ConfigDict(populate_by_name=True)

    text: str = Field("", max_length=NOTE_TEXT_MAX_CHARS)
    text_html: str | None = Field(None, alias="textHtml", max_length=NOTE_HTML_MAX_CHARS)
    image_data: str | None = Field(None, alias="imageData", max_length=NOTE_IMAGE_MAX_CHARS)


class CaptureResponse(BaseModel):
    notes: list[NoteResponse]
    todos: list[TodoResponse]


class NoteListResponse(BaseModel):
    notes: list[NoteResponse]


class SingleNoteResponse(BaseModel):
    note: NoteResponse


class UpdateNoteRequest(BaseModel):
    category: str = Field(..., min_length=1, max_length=NAME_MAX_CHARS)


class ExtractedTodosResponse(BaseModel):
    todos: list[TodoResponse]


class AttachLabelRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=NAME_MAX_CHARS)


# ============================================================================
# Endpoints
# ============================================================================


@router.get("", response_model=NoteListResponse)
async def list_notes(user_id: str = Depends(get_current_user_id)) -> NoteListResponse:
    """List the user's notes, newest first, with category and labels."""
    try:
        notes = NoteRepository.list_by_user(user_id)
        return NoteListResponse(notes=[NoteResponse.from_note(n) for n in notes])
    except Exception as e:
        logger.error("Failed to list notes: %s", e)
        raise InternalError("Failed to load notes", e) from None


@router.post("", response_model=CaptureResponse, status_code=201)
async def create_notes(
    request: CreateNoteRequest,
    user_id: str = Depends(get_current_user_id),
    service: CaptureService = Depends(get_capture_service),
) -> CaptureResponse:
    """
    Capture a free-text submission.

    One submission may produce several notes and todos. The response carries
    the created notes and the user's whole todo list.
    """
    try:
        result = service.capture(
            user_id,
            request.text,
            text_html=request.text_html,
            image_data=request.image_data,
        )
        return CaptureResponse(
            notes=[NoteResponse.from_note(n) for n in result.notes],
            todos=[TodoResponse.from_todo(t) for t in result.todos],
        )
    except (InvalidCaptureError, ValueError) as e:
        raise ValidationFailed("Invalid request", sanitize_error_message(str(e), 400)) from None
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to capture note: %s", e)
        raise InternalError("Failed to save note", e) from None


@router.patch("/{note_id}", response_model=SingleNoteResponse)
async def update_note(
    note_id: str,
    request: UpdateNoteRequest,
    user_id: str = Depends(get_current_user_id),
) -> SingleNoteResponse:
    """Reassign a note's category."""
    try:
        if CategoryRepository.get(request.category) is None:
            raise ValidationFailed("Unknown category")

        note = NoteRepository.update_category(user_id, note_id, request.category)
        if note is None:
            raise NotFound("Note not found")

        logger.info("Moved note %s to %s", note_id, request.category)
        return SingleNoteResponse(note=NoteResponse.from_note(note))
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to update note: %s", e)
        raise InternalError("Failed to update note", e) from None


@router.delete("/{note_id}")
async def delete_note(note_id: str, user_id: str = Depends(get_current_user_id)) -> dict[str, bool]:
    """Delete a note. Todos extracted from it are kept."""
    try:
        if not NoteRepository.delete(user_id, note_id):
            raise NotFound("Note not found")
        return {"deleted": True}
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to delete note: %s", e)
        raise InternalError("Failed to delete note", e) from None


@router.post("/{note_id}/todos", response_model=ExtractedTodosResponse, status_code=201)
async def extract_note_todos(
    note_id: str,
    user_id: str = Depends(get_current_user_id),
    service: CaptureService = Depends(get_capture_service),
) -> ExtractedTodosResponse:
    """Run todo extraction on a stored note."""
    try:
        todos = service.extract_todos_from_note(user_id, note_id)
        return ExtractedTodosResponse(todos=[TodoResponse.from_todo(t) for t in todos])
    except NoteNotFoundError:
        raise NotFound("Note not found") from None
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to extract todos from note: %s", e)
        raise InternalError("Failed to extract todos", e) from None


@router.post("/{note_id}/labels", response_model=LabelsResponse)
async def attach_note_label(
    note_id: str,
    request: AttachLabelRequest,
    user_id: str = Depends(get_current_user_id),
) -> LabelsResponse:
    """Attach a label by name, creating the label if the user has none by that name."""
    try:
        if not NoteRepository.exists(user_id, note_id):
            raise NotFound("Note not found")

        label = LabelRepository.upsert(user_id, request.name)
        if label is None:
            raise ValidationFailed("Invalid label name")

        LabelRepository.attach_to_note(note_id, label.id)
        labels = LabelRepository.for_notes([note_id]).get(note_id, [])
        return LabelsResponse(labels=[LabelResponse.from_label(lb) for lb in labels])
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to attach label to note: %s", e)
        raise InternalError("Failed to attach label", e) from None


@router.delete("/{note_id}/labels", response_model=LabelsResponse)
async def detach_note_label(
    note_id: str,
    label_id: str | None = Query(None, alias="labelId"),
    user_id: str = Depends(get_current_user_id),
) -> LabelsResponse:
    """Detach a label from a note."""
    if not label_id:
        raise ValidationFailed("labelId is required")

    try:
        if not NoteRepository.exists(user_id, note_id):
            raise NotFound("Note not found")

        LabelRepository.detach_from_note(user_id, note_id, label_id)
        labels = LabelRepository.for_notes([note_id]).get(note_id, [])
        return LabelsResponse(labels=[LabelResponse.from_label(lb) for lb in labels])
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to detach label from note: %s", e)
        raise InternalError("Failed to detach label", e) from None
