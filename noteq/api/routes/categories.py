"""
Categories API endpoints.

Categories are global. The "uncategorized" sentinel can't be created,
edited or deleted.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, field_validator

from noteq.api.errors import InternalError, NotFound, ValidationFailed
from noteq.api.middleware.user_auth import get_current_user_id
from noteq.api.schemas import CategoryResponse
from noteq.config import NAME_MAX_CHARS
from noteq.observability.logging import get_logger
from noteq.observability.telemetry import log_event
from noteq.storage import Category, CategoryRepository
from noteq.utils.error_sanitizer import sanitize_error_message
from noteq.utils.validators import (
    slugify_category_name,
    validate_category_slug,
    validate_hex_color,
)

router = APIRouter(prefix="/api/categories", tags=["categories"])
logger = get_logger(__name__)

DEFAULT_CATEGORY_COLOR = "#475569"


class CategoryListResponse(BaseModel):
    categories: list[CategoryResponse]


class SingleCategoryResponse(BaseModel):
    category: CategoryResponse


class CreateCategoryRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=NAME_MAX_CHARS)
    label: str = Field(..., min_length=1, max_length=NAME_MAX_CHARS)
    color: str = DEFAULT_CATEGORY_COLOR

    @field_validator("name", "label")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str) -> str:
        return validate_hex_color(v)


class UpdateCategoryRequest(CreateCategoryRequest):
    color: str


@router.get("", response_model=CategoryListResponse)
async def list_categories(user_id: str = Depends(get_current_user_id)) -> CategoryListResponse:
    """List categories, uncategorized last."""
    try:
        categories = CategoryRepository.list_all()
        return CategoryListResponse(
            categories=[CategoryResponse.from_category(c) for c in categories]
        )
    except Exception as e:
        logger.error("Failed to list categories: %s", e)
        raise InternalError("Failed to load categories", e) from None


@router.post("", response_model=SingleCategoryResponse, status_code=201)
async def create_category(
    request: CreateCategoryRequest,
    user_id: str = Depends(get_current_user_id),
) -> SingleCategoryResponse:
    """Create a category; the slug is derived from the name."""
    try:
        slug = validate_category_slug(slugify_category_name(request.name))
        category = CategoryRepository.create(
            Category(slug=slug, name=request.name, label=request.label, color=request.color)
        )
        log_event("categories.created", slug=slug, user_id=user_id)
        return SingleCategoryResponse(category=CategoryResponse.from_category(category))
    except ValueError as e:
        raise ValidationFailed(sanitize_error_message(str(e), 400)) from None
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to create category: %s", e)
        raise InternalError("Failed to create category", e) from None


@router.patch("/{slug}", response_model=SingleCategoryResponse)
async def update_category(
    slug: str,
    request: UpdateCategoryRequest,
    user_id: str = Depends(get_current_user_id),
) -> SingleCategoryResponse:
    try:
        category = CategoryRepository.update(slug, request.name, request.label, request.color)
        if category is None:
            raise NotFound("Category not found")
        return SingleCategoryResponse(category=CategoryResponse.from_category(category))
    except ValueError as e:
        raise ValidationFailed(sanitize_error_message(str(e), 400)) from None
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to update category: %s", e)
        raise InternalError("Failed to update category", e) from None


@router.delete("/{slug}")
async def delete_category(
    slug: str,
    user_id: str = Depends(get_current_user_id),
) -> dict[str, object]:
    """Delete a category. Its notes move to uncategorized."""
    try:
        moved = CategoryRepository.delete(slug)
        if moved is None:
            raise NotFound("Category not found")
        log_event("categories.deleted", slug=slug, notes_moved=moved, user_id=user_id)
        return {"deleted": True, "notesMoved": moved}
    except ValueError as e:
        raise ValidationFailed(sanitize_error_message(str(e), 400)) from None
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to delete category: %s", e)
        raise InternalError("Failed to delete category", e) from None
