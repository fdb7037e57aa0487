"""
Text segmenter: breaks a free-text submission into candidate entries.
"""

from __future__ import annotations

import re

SEGMENT_SEPARATOR = re.compile(r"\n+|;")
_WHITESPACE = re.compile(r"\s+")


def normalize_line(text: str) -> str:
    """Collapse whitespace runs to a single space and trim."""
    return _WHITESPACE.sub(" ", text).strip()


def split_segments(text: str) -> list[str]:
    """
    Split on runs of newlines and on semicolons, trimming each piece.

    Empty pieces are dropped. If nothing survives (input made only of
    separators), the trimmed input is returned as the single segment, so
    the result is empty only for blank input.

    Examples:
        "Need eggs\\n\\nCall mom; idea: app" -> ["Need eggs", "Call mom", "idea: app"]
        "   " -> []
    """
    if not text:
        return []

    segments = [piece.strip() for piece in SEGMENT_SEPARATOR.split(text)]
    segments = [piece for piece in segments if piece]
    if segments:
        return segments

    whole = text.strip()
    return [whole] if whole else []
