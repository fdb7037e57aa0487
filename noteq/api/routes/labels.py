"""
Labels API endpoints.

Labels are per user; names are unique per user ignoring case.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, field_validator

from noteq.api.errors import InternalError, NotFound, ValidationFailed
from noteq.api.middleware.user_auth import get_current_user_id
from noteq.api.schemas import (
    LabelResponse,
    LabelWithCountsResponse,
    NoteResponse,
    TodoResponse,
)
from noteq.capture.service import CaptureService, get_capture_service
from noteq.config import LABEL_ITEMS_LIMIT, NAME_MAX_CHARS
from noteq.observability.logging import get_logger
from noteq.storage import LabelRepository, NoteRepository, TodoRepository
from noteq.utils.error_sanitizer import sanitize_error_message
from noteq.utils.validators import is_uuid, validate_hex_color

router = APIRouter(prefix="/api/labels", tags=["labels"])
logger = get_logger(__name__)


# ============================================================================
# Request/Response Models
# ============================================================================


class LabelListResponse(BaseModel):
    labels: list[LabelWithCountsResponse]


class SingleLabelResponse(BaseModel):
    label: LabelResponse


class CreateLabelRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=NAME_MAX_CHARS)
    color: str | None = None

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str | None) -> str | None:
        return validate_hex_color(v) if v else None


class UpdateLabelRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=NAME_MAX_CHARS)
    color: str

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str) -> str:
        return validate_hex_color(v)


class LabelItemsSummary(BaseModel):
    noteCount: int
    todoCount: int


class LabelItemsResponse(BaseModel):
    label: LabelResponse
    notes: list[NoteResponse]
    todos: list[TodoResponse]
    summary: LabelItemsSummary


class AutoLabelSummaryResponse(BaseModel):
    notesScanned: int
    todosScanned: int
    noteLinksAdded: int
    todoLinksAdded: int
    labelsCreated: int


class ApplyAutoLabelsResponse(BaseModel):
    summary: AutoLabelSummaryResponse


# ============================================================================
# Endpoints
# ============================================================================


@router.get("", response_model=LabelListResponse)
async def list_labels(user_id: str = Depends(get_current_user_id)) -> LabelListResponse:
    """List the user's labels with how many notes and todos carry each."""
    try:
        labels = LabelRepository.list_with_counts(user_id)
        return LabelListResponse(labels=[LabelWithCountsResponse.from_label(lb) for lb in labels])
    except Exception as e:
        logger.error("Failed to list labels: %s", e)
        raise InternalError("Failed to load labels", e) from None


@router.post("", response_model=SingleLabelResponse, status_code=201)
async def create_label(
    request: CreateLabelRequest,
    user_id: str = Depends(get_current_user_id),
) -> SingleLabelResponse:
    """
    Create a label. Posting an existing name (any case) returns that label
    unchanged.
    """
    try:
        label = LabelRepository.upsert(user_id, request.name, request.color)
        if label is None:
            raise ValidationFailed("Invalid label name")
        return SingleLabelResponse(label=LabelResponse.from_label(label))
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to create label: %s", e)
        raise InternalError("Failed to create label", e) from None


@router.post("/apply-auto", response_model=ApplyAutoLabelsResponse)
async def apply_auto_labels(
    user_id: str = Depends(get_current_user_id),
    service: CaptureService = Depends(get_capture_service),
) -> ApplyAutoLabelsResponse:
    """Link the user's existing labels to unlabeled notes and todos."""
    try:
        summary = service.apply_auto_labels(user_id)
        return ApplyAutoLabelsResponse(
            summary=AutoLabelSummaryResponse(
                notesScanned=summary.notes_scanned,
                todosScanned=summary.todos_scanned,
                noteLinksAdded=summary.note_links_added,
                todoLinksAdded=summary.todo_links_added,
                labelsCreated=summary.labels_created,
            )
        )
    except Exception as e:
        logger.error("Failed to apply auto labels: %s", e)
        raise InternalError("Failed to apply labels", e) from None


@router.patch("/{label_id}", response_model=SingleLabelResponse)
async def update_label(
    label_id: str,
    request: UpdateLabelRequest,
    user_id: str = Depends(get_current_user_id),
) -> SingleLabelResponse:
    """Rename and recolor a label."""
    if not is_uuid(label_id):
        raise NotFound("Label not found")

    try:
        label = LabelRepository.update(user_id, label_id, request.name, request.color)
        if label is None:
            raise NotFound("Label not found")
        return SingleLabelResponse(label=LabelResponse.from_label(label))
    except ValueError as e:
        raise ValidationFailed(sanitize_error_message(str(e), 400)) from None
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to update label: %s", e)
        raise InternalError("Failed to update label", e) from None


@router.delete("/{label_id}")
async def delete_label(label_id: str, user_id: str = Depends(get_current_user_id)) -> dict[str, bool]:
    if not is_uuid(label_id):
        raise NotFound("Label not found")

    try:
        if not LabelRepository.delete(user_id, label_id):
            raise NotFound("Label not found")
        return {"deleted": True}
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to delete label: %s", e)
        raise InternalError("Failed to delete label", e) from None


@router.get("/{label_id}/items", response_model=LabelItemsResponse)
async def list_label_items(
    label_id: str,
    user_id: str = Depends(get_current_user_id),
) -> LabelItemsResponse:
    """Notes and todos carrying a label, newest first."""
    if not is_uuid(label_id):
        raise NotFound("Label not found")

    try:
        label = LabelRepository.get(user_id, label_id)
        if label is None:
            raise NotFound("Label not found")

        notes = NoteRepository.list_by_label(user_id, label_id, LABEL_ITEMS_LIMIT)
        todos = TodoRepository.list_by_label(user_id, label_id, LABEL_ITEMS_LIMIT)
        return LabelItemsResponse(
            label=LabelResponse.from_label(label),
            notes=[NoteResponse.from_note(n) for n in notes],
            todos=[TodoResponse.from_todo(t) for t in todos],
            summary=LabelItemsSummary(noteCount=len(notes), todoCount=len(todos)),
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to list label items: %s", e)
        raise InternalError("Failed to load label items", e) from None
