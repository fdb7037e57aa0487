"""
Shared utilities for keeping note text out of logs and prompts.

Provides:
- redact(): Hash sensitive strings for correlation without exposure
- preview(): Short visible prefix plus hash, for debug logs
- sanitize_for_prompt(): Remove potential prompt injection patterns
"""

from __future__ import annotations

import re
from hashlib import sha256

INJECTION_PATTERNS = [
    r"ignore\s+(previous|above|all)\s+instructions?",
    r"disregard\s+(previous|above|all)\s+instructions?",
    r"forget\s+(previous|above|all)\s+instructions?",
    r"new\s+instructions?:",
    r"system\s*:",
    r"assistant\s*:",
    r"user\s*:",
    r"\[INST\]",
    r"\[/INST\]",
    r"<\|im_start\|>",
    r"<\|im_end\|>",
]
INJECTION_REGEX = re.compile("|".join(INJECTION_PATTERNS), re.IGNORECASE)


def redact(value: str | None) -> str:
    """
    Return a stable hash representation of a sensitive string.
    """
    if not value:
        return "hash:missing"
    digest = sha256(value.encode("utf-8")).hexdigest()[:12]
    return f"hash:{digest}"


def preview(text: str | None, max_length: int = 24) -> str:
    """
    Partially redact note text for debug logging.

    Example:
        "Call the dentist tomorrow about the crown" ->
        "Call the dentist tomorro... (h:1a2b3c)"
    """
    if not text:
        return "(empty)"

    visible = text[:max_length] + "..." if len(text) > max_length else text
    digest = sha256(text.encode("utf-8")).hexdigest()[:6]
    return f"{visible} (h:{digest})"


def sanitize_for_prompt(text: str, max_length: int = 4000) -> str:
    """
    Sanitize user-provided text before including it in an LLM prompt.

    Truncates, strips known injection phrases and drops characters that
    could break the prompt template.
    """
    if not text:
        return ""

    text = text[:max_length]
    text = INJECTION_REGEX.sub("[REDACTED]", text)
    text = re.sub(r"[<>{}|\\]", "", text)

    return text.strip()
