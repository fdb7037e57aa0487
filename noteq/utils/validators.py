"""
Input validation utilities.

Validates names, colours and identifiers arriving from the API before they
reach the database.
"""

from __future__ import annotations

import re
import uuid

HEX_COLOR_PATTERN = re.compile(r"^#[0-9a-fA-F]{6}$")

SENTINEL_CATEGORY = "uncategorized"


class ValidationError(ValueError):
    """Raised when input validation fails."""

    pass


def is_hex_color(value: str | None) -> bool:
    return bool(value) and bool(HEX_COLOR_PATTERN.match(value))


def validate_hex_color(value: str) -> str:
    """
    Validate a #RRGGBB colour string.

    Raises:
        ValidationError: If the value is not a 6-digit hex colour
    """
    if not is_hex_color(value):
        raise ValidationError("Color must be a hex value like #1a2b3c")
    return value


def slugify_category_name(name: str) -> str:
    """
    Derive a category slug from its display name.

    Lowercases, replaces runs of non-alphanumerics with "-" and trims
    leading/trailing dashes. Returns "" when nothing usable is left.

    Example:
        "Side Projects!" -> "side-projects"
    """
    slug = re.sub(r"[^a-z0-9]+", "-", name.strip().lower())
    return slug.strip("-")[:40]


def validate_category_slug(slug: str) -> str:
    """
    Validate a slug produced for a new category.

    Raises:
        ValidationError: If the slug is empty or the protected sentinel
    """
    if not slug or slug == SENTINEL_CATEGORY:
        raise ValidationError("Invalid category name")
    return slug


def is_uuid(value: str | None) -> bool:
    """True when value parses as a UUID (ids are uuid4 strings)."""
    if not value:
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True
