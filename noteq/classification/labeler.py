"""
Label suggestion (labels taxonomy policy) and label name/colour rules.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import TYPE_CHECKING

from noteq.config import MAX_LABELS_PER_ITEM
from noteq.observability.logging import get_logger
from noteq.observability.telemetry import counter

if TYPE_CHECKING:
    from noteq.classification.backends import ClassifierBackend

logger = get_logger(__name__)

LABEL_NAME_MAX_CHARS = 30

COLOR_PALETTE = [
    "#0ea5e9",
    "#22c55e",
    "#f59e0b",
    "#ef4444",
    "#8b5cf6",
    "#14b8a6",
    "#f97316",
    "#64748b",
]

FALLBACK_KEYWORDS: list[tuple[str, re.Pattern[str]]] = [
    ("Shopping", re.compile(r"\b(buy|shopping|grocery|milk|eggs|store|market)\b", re.IGNORECASE)),
    ("Work", re.compile(r"\b(meeting|client|project|deadline|roadmap|invoice|team)\b", re.IGNORECASE)),
    ("Health", re.compile(r"\b(doctor|dentist|workout|sleep|medicine|health)\b", re.IGNORECASE)),
    ("Family", re.compile(r"\b(mom|dad|family|kids|home)\b", re.IGNORECASE)),
    ("Finance", re.compile(r"\b(budget|rent|expense|payment|bank|tax)\b", re.IGNORECASE)),
    ("Urgent", re.compile(r"\b(urgent|asap|today|immediately|important)\b", re.IGNORECASE)),
    ("Follow-Up", re.compile(r"\b(follow up|remind|check in|call back)\b", re.IGNORECASE)),
]

_DISALLOWED = re.compile(r"[^a-zA-Z0-9\s\-_/]")
_WHITESPACE = re.compile(r"\s+")


def normalize_label_name(name: str | None) -> str:
    """
    Canonical display form of a label name; "" means invalid.

    Examples:
        "  urgent!! " -> "Urgent"
        "follow-up" -> "Follow-up"
        "???" -> ""
    """
    if not name:
        return ""
    cleaned = _WHITESPACE.sub(" ", _DISALLOWED.sub(" ", name)).strip()[:LABEL_NAME_MAX_CHARS]
    words = [part for part in cleaned.split(" ") if part]
    return " ".join(part[:1].upper() + part[1:].lower() for part in words)


def _java_string_hash(value: str) -> int:
    h = 0
    for char in value:
        h = ((h << 5) - h + ord(char)) & 0xFFFFFFFF
    # back to signed 32-bit
    return h - 0x100000000 if h >= 0x80000000 else h


def pick_label_color(name: str) -> str:
    """Deterministic palette colour for a (normalized) label name."""
    return COLOR_PALETTE[abs(_java_string_hash(name)) % len(COLOR_PALETTE)]


def _unique_normalized(names: Iterable[str]) -> list[str]:
    result: list[str] = []
    seen: set[str] = set()
    for name in names:
        normalized = normalize_label_name(name)
        if normalized and normalized.lower() not in seen:
            seen.add(normalized.lower())
            result.append(normalized)
    return result


def fallback_labels(text: str, existing: Iterable[str] = ()) -> list[str]:
    """
    Keyword-only label suggestions.

    Existing label names that occur in the text (case-insensitive substring)
    come first, then the built-in keyword groups. Capped at MAX_LABELS_PER_ITEM.
    """
    lowered = text.lower()
    found = [name for name in existing if name and name.lower() in lowered]
    found.extend(label for label, pattern in FALLBACK_KEYWORDS if pattern.search(text))
    return _unique_normalized(found)[:MAX_LABELS_PER_ITEM]


def suggest_labels(
    text: str,
    existing: Iterable[str] = (),
    backend: ClassifierBackend | None = None,
) -> list[str]:
    """
    Label suggestions for one note or todo.

    Backend suggestions come first, then fallback_labels(); deduplicated
    and capped at MAX_LABELS_PER_ITEM. A failing backend degrades to the
    fallback labels.

    Side Effects:
        - May call the LLM (Gemini backend only)
    """
    existing = [name for name in existing if name]
    fallback = fallback_labels(text, existing)

    if backend is None:
        from noteq.classification.backends import get_backend

        backend = get_backend()

    try:
        suggested = backend.suggest_labels(text, existing)
    except Exception as e:
        counter("labels.suggest.backend_error")
        logger.warning("Label suggestion failed, using keyword labels: %s", e)
        return fallback

    suggested = _unique_normalized(suggested)[:MAX_LABELS_PER_ITEM]
    return _unique_normalized(suggested + fallback)[:MAX_LABELS_PER_ITEM]
