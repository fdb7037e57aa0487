"""
Todos API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field

from noteq.api.errors import InternalError, NotFound, ValidationFailed
from noteq.api.middleware.user_auth import get_current_user_id
from noteq.api.schemas import LabelResponse, LabelsResponse, TodoResponse
from noteq.capture.service import CaptureService, InvalidCaptureError, get_capture_service
from noteq.config import NAME_MAX_CHARS, NOTE_TEXT_MAX_CHARS
from noteq.observability.logging import get_logger
from noteq.storage import LabelRepository, TodoRepository
from noteq.utils.error_sanitizer import sanitize_error_message

router = APIRouter(prefix="/api/todos", tags=["todos"])
logger = get_logger(__name__)


class TodoListResponse(BaseModel):
    todos: list[TodoResponse]


class SingleTodoResponse(BaseModel):
    todo: TodoResponse


class CreateTodoRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: str = Field(..., min_length=1, max_length=NOTE_TEXT_MAX_CHARS)
    source_note_id: str | None = Field(None, alias="sourceNoteId")


class UpdateTodoRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_done: bool = Field(..., alias="isDone")


class AttachLabelRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=NAME_MAX_CHARS)


@router.get("", response_model=TodoListResponse)
async def list_todos(user_id: str = Depends(get_current_user_id)) -> TodoListResponse:
    """List the user's todos, open ones first, newest first within each group."""
    try:
        todos = TodoRepository.list_by_user(user_id)
        return TodoListResponse(todos=[TodoResponse.from_todo(t) for t in todos])
    except Exception as e:
        logger.error("Failed to list todos: %s", e)
        raise InternalError("Failed to load todos", e) from None


@router.post("", response_model=SingleTodoResponse, status_code=201)
async def create_todo(
    request: CreateTodoRequest,
    user_id: str = Depends(get_current_user_id),
    service: CaptureService = Depends(get_capture_service),
) -> SingleTodoResponse:
    """Create a todo by hand, optionally linked to one of the user's notes."""
    try:
        todo = service.create_todo(user_id, request.content, request.source_note_id)
        return SingleTodoResponse(todo=TodoResponse.from_todo(todo))
    except (InvalidCaptureError, ValueError) as e:
        raise ValidationFailed(sanitize_error_message(str(e), 400)) from None
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to create todo: %s", e)
        raise InternalError("Failed to create todo", e) from None


@router.patch("/{todo_id}", response_model=SingleTodoResponse)
async def update_todo(
    todo_id: str,
    request: UpdateTodoRequest,
    user_id: str = Depends(get_current_user_id),
) -> SingleTodoResponse:
    try:
        todo = TodoRepository.set_done(user_id, todo_id, request.is_done)
        if todo is None:
            raise NotFound("Todo not found")
        return SingleTodoResponse(todo=TodoResponse.from_todo(todo))
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to update todo: %s", e)
        raise InternalError("Failed to update todo", e) from None


@router.delete("/{todo_id}")
async def delete_todo(todo_id: str, user_id: str = Depends(get_current_user_id)) -> dict[str, bool]:
    try:
        if not TodoRepository.delete(user_id, todo_id):
            raise NotFound("Todo not found")
        return {"deleted": True}
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to delete todo: %s", e)
        raise InternalError("Failed to delete todo", e) from None


@router.post("/{todo_id}/labels", response_model=LabelsResponse)
async def attach_todo_label(
    todo_id: str,
    request: AttachLabelRequest,
    user_id: str = Depends(get_current_user_id),
) -> LabelsResponse:
    """Attach a label by name, creating it if needed."""
    try:
        if not TodoRepository.exists(user_id, todo_id):
            raise NotFound("Todo not found")

        label = LabelRepository.upsert(user_id, request.name)
        if label is None:
            raise ValidationFailed("Invalid label name")

        LabelRepository.attach_to_todo(todo_id, label.id)
        labels = LabelRepository.for_todos([todo_id]).get(todo_id, [])
        return LabelsResponse(labels=[LabelResponse.from_label(lb) for lb in labels])
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to attach label to todo: %s", e)
        raise InternalError("Failed to attach label", e) from None


@router.delete("/{todo_id}/labels", response_model=LabelsResponse)
async def detach_todo_label(
    todo_id: str,
    label_id: str | None = Query(None, alias="labelId"),
    user_id: str = Depends(get_current_user_id),
) -> LabelsResponse:
    if not label_id:
        raise ValidationFailed("labelId is required")

    try:
        if not TodoRepository.exists(user_id, todo_id):
            raise NotFound("Todo not found")

        LabelRepository.detach_from_todo(user_id, todo_id, label_id)
        labels = LabelRepository.for_todos([todo_id]).get(todo_id, [])
        return LabelsResponse(labels=[LabelResponse.from_label(lb) for lb in labels])
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to detach label from todo: %s", e)
        raise InternalError("Failed to detach label", e) from None
