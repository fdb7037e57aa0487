"""HTML cleanup for rich-text note bodies.

The capture client may send the editor's HTML alongside the plain text.
It is stored for display, so scripts and inline event handlers are removed
first.
"""

from __future__ import annotations

from bs4 import BeautifulSoup

from noteq.observability.logging import get_logger

logger = get_logger(__name__)


def sanitize_html(html: str | None) -> str:
    """Strip <script> elements and on* attributes from an HTML fragment.

    Args:
        html: Raw HTML from the client (may be None or empty).

    Returns:
        The cleaned fragment, or "" for empty input.
    """
    if not html:
        return ""

    soup = BeautifulSoup(html, "html.parser")

    removed = 0
    for tag in soup.find_all("script"):
        tag.decompose()
        removed += 1

    for tag in soup.find_all(True):
        handlers = [attr for attr in tag.attrs if attr.lower().startswith("on")]
        for attr in handlers:
            del tag.attrs[attr]
            removed += 1

    if removed:
        logger.debug("Removed %d unsafe HTML nodes/attributes", removed)

    return str(soup)
