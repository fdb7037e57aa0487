"""
Todo extraction: turns a segment into zero or more actionable phrases.

The heuristic rules are tried in order; the first one that matches wins:
  1. "need / missing / out of X"        -> "Buy X" (leading "some " dropped)
  2. "buy / get / pick up X"            -> "Buy X"
  3. "call / email / schedule / ... X"  -> the matched phrase as written
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from noteq.config import MAX_TODOS_PER_SEGMENT
from noteq.observability.logging import get_logger

if TYPE_CHECKING:
    from noteq.classification.backends import ClassifierBackend

logger = get_logger(__name__)

NEED_PATTERN = re.compile(r"\b(need|missing|out of)\s+(.+)", re.IGNORECASE)
BUY_PATTERN = re.compile(r"\b(buy|get|pick up)\s+(.+)", re.IGNORECASE)
TASK_PATTERN = re.compile(r"\b(call|email|schedule|finish|submit|book)\s+(.+)", re.IGNORECASE)
LEADING_SOME = re.compile(r"^some\s+", re.IGNORECASE)

_TRAILING_PERIODS = re.compile(r"[\s.]+$")
_WHITESPACE = re.compile(r"\s+")


def _capitalize_first(phrase: str) -> str:
    return phrase[:1].upper() + phrase[1:]


def heuristic_todo(segment: str) -> str | None:
    """
    Rewrite a segment as a todo phrase, or None when no rule applies.

    Matching ignores case; the captured text keeps the user's casing and the
    phrase gets a capital first letter.

    Examples:
        "Need eggs" -> "Buy eggs"
        "out of some coffee" -> "Buy coffee"
        "call the dentist tomorrow" -> "Call the dentist tomorrow"
        "lovely weather" -> None
    """
    text = segment.strip()
    if not text:
        return None

    match = NEED_PATTERN.search(text)
    if match and match.group(2).strip():
        return f"Buy {LEADING_SOME.sub('', match.group(2).strip())}"

    match = BUY_PATTERN.search(text)
    if match and match.group(2).strip():
        return f"Buy {match.group(2).strip()}"

    match = TASK_PATTERN.search(text)
    if match:
        return _capitalize_first(match.group(0).strip())

    return None


def cleanup_todo(text: str) -> str:
    """Trim, drop trailing periods and collapse whitespace."""
    text = _TRAILING_PERIODS.sub("", text.strip())
    return _WHITESPACE.sub(" ", text).strip()


def extract_todo_items(segment: str, backend: ClassifierBackend | None = None) -> list[str]:
    """
    Ask the classifier backend for todo phrases in one segment.

    Args:
        segment: One trimmed segment from split_segments()
        backend: Classifier backend (defaults to the process-wide one)

    Returns:
        0-5 cleaned phrases in backend order, none ending in a period
    """
    if backend is None:
        from noteq.classification.backends import get_backend

        backend = get_backend()

    phrases = []
    for raw in backend.extract_todos(segment):
        cleaned = cleanup_todo(raw)
        if cleaned:
            phrases.append(cleaned)
        if len(phrases) >= MAX_TODOS_PER_SEGMENT:
            break

    return phrases
