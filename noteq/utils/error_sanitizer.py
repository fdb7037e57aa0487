"""
Error message sanitization utility.

Keeps file paths, tracebacks, SQL internals and secrets out of the
`details` field of error responses.
"""

from __future__ import annotations

import re

from noteq.observability.logging import get_logger

logger = get_logger(__name__)

# Patterns that might leak sensitive information
SENSITIVE_PATTERNS = [
    # File paths
    r"/[^\s]+\.(py|db)",
    r"[A-Za-z]:\\[^\s]+",
    # Stack trace indicators
    r"Traceback \(most recent call last\)",
    r"File \".*\"",
    r"line \d+",
    # Database errors
    r"sqlite3?\.",
    r"UNIQUE constraint",
    r"FOREIGN KEY constraint",
    r"no such table",
    r"no such column",
    # Keys and tokens
    r"[A-Za-z0-9_-]{20,}",
    r"Bearer [A-Za-z0-9._-]+",
    # Internal module names
    r"noteq\.[a-z_.]+",
]

GENERIC_MESSAGES = {
    400: "Invalid request. Please check your input and try again.",
    401: "Authentication required.",
    403: "Access denied.",
    404: "Resource not found.",
    422: "Invalid data format.",
    429: "Too many requests. Please try again later.",
    500: "An internal error occurred. Please try again later.",
    503: "Service temporarily unavailable.",
}

MAX_DETAIL_LENGTH = 120


def sanitize_error_message(message: str | None, status_code: int = 500) -> str:
    """
    Sanitize an error message to prevent information leakage.

    Short single-line messages with nothing that looks like a path,
    traceback, SQL error or secret are returned as-is; everything else is
    replaced with the generic message for the status code.

    Args:
        message: The original error message
        status_code: HTTP status code (selects the generic fallback)

    Returns:
        Message safe for client consumption
    """
    generic = GENERIC_MESSAGES.get(status_code, "An error occurred.")
    if not message:
        return generic

    for pattern in SENSITIVE_PATTERNS:
        if re.search(pattern, message, re.IGNORECASE):
            logger.warning("Sanitized sensitive error pattern: %s", pattern)
            return generic

    if len(message) < MAX_DETAIL_LENGTH and not any(c in message for c in "{}[]\n"):
        return message

    return generic


