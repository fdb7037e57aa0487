"""
Intake classifier: decides which parts of a submission are notes and which
are todos.

Pipeline per segment:
    extract_todo_items(segment)
      -> phrases found:           phrases become todos, segment is consumed
      -> no phrases, TODO_HINT:   the whole segment becomes a todo
      -> otherwise:               the segment becomes a note
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from noteq.classification.models import IntakeResult
from noteq.classification.segmenter import normalize_line, split_segments
from noteq.classification.todo_extractor import extract_todo_items
from noteq.observability.logging import get_logger
from noteq.observability.telemetry import counter

if TYPE_CHECKING:
    from noteq.classification.backends import ClassifierBackend

logger = get_logger(__name__)

TODO_HINT = re.compile(
    r"^(buy|get|pick up|pickup|call|email|schedule|book|finish|submit|pay|send|review|fix|prepare|remember)\b"
    r"|\b(need to|todo|to-do|don't forget|remind me|missing|out of)\b",
    re.IGNORECASE,
)


def looks_like_todo(segment: str) -> bool:
    return bool(TODO_HINT.search(segment))


def _dedupe(items: list[str]) -> list[str]:
    seen: set[str] = set()
    unique = []
    for item in items:
        if item not in seen:
            seen.add(item)
            unique.append(item)
    return unique


def classify_intake(text: str, backend: ClassifierBackend | None = None) -> IntakeResult:
    """
    Split free text into note entries and todo phrases.

    Never drops non-blank input: if no segment produced anything, the
    normalized whole input comes back as a single note.

    Args:
        text: Raw submission text
        backend: Classifier backend used for todo extraction

    Returns:
        IntakeResult with order-preserving, deduplicated notes and todos

    Side Effects:
        - May call the LLM once per segment (Gemini backend only)
        - Increments intake.* telemetry counters
    """
    if backend is None:
        from noteq.classification.backends import get_backend

        backend = get_backend()

    notes: list[str] = []
    todos: list[str] = []

    for segment in split_segments(text):
        phrases = extract_todo_items(segment, backend)

        if phrases:
            todos.extend(p for p in (normalize_line(p) for p in phrases) if p)
            continue

        normalized = normalize_line(segment)
        if not normalized:
            continue

        if looks_like_todo(segment):
            todos.append(normalized)
        else:
            notes.append(normalized)

    if not notes and not todos and text.strip():
        notes.append(normalize_line(text))
        counter("intake.whole_input_fallback")

    result = IntakeResult(notes=_dedupe(notes), todos=_dedupe(todos))
    counter("intake.classified")
    logger.debug("Intake produced %d notes, %d todos", len(result.notes), len(result.todos))
    return result
