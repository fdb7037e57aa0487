"""
Category assignment (category taxonomy policy).

Rules first: every category's keywords are counted against the text and the
category with the most hits wins. Ties go to the category declared first
(defaults in the order below, then custom categories in table order). The
Gemini backend is only consulted when no keyword hits at all.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from noteq.classification.models import (
    CategorizedEntry,
    CategoryResult,
    ClassificationSource,
)
from noteq.config import (
    MAX_SPLIT_ENTRIES,
    MAX_TAGS_PER_NOTE,
    RULES_CONFIDENCE,
    RULES_TIED_CONFIDENCE,
    UNCATEGORIZED_CONFIDENCE,
)

if TYPE_CHECKING:
    from noteq.classification.backends import ClassifierBackend

UNCATEGORIZED = "uncategorized"

DEFAULT_KEYWORDS: dict[str, list[str]] = {
    "grocery": ["grocery", "milk", "eggs", "bread", "buy", "store", "supermarket"],
    "tasks": ["todo", "to-do", "finish", "complete", "send", "call", "submit"],
    "reminders": ["remember", "remind", "dont forget", "don't forget", "later", "tomorrow"],
    "ideas": ["idea", "brainstorm", "what if", "startup", "project idea"],
    "work": ["meeting", "client", "roadmap", "deadline", "sprint", "jira"],
    "health": ["doctor", "workout", "exercise", "sleep", "medicine", "vitamin"],
    "finance": ["budget", "invoice", "pay", "expense", "rent", "subscription"],
    UNCATEGORIZED: [],
}

_TAG_CLEANUP = re.compile(r"[^a-z0-9\s]")
_WORD = re.compile(r"[a-z0-9]+")


def _field(category: Any, name: str) -> str:
    # dicts and sqlite3.Row both expose keys()
    if hasattr(category, "keys"):
        return str(category[name] or "") if name in category.keys() else ""
    return str(getattr(category, name, "") or "")


def build_keyword_table(categories: Iterable[Any] | None = None) -> dict[str, list[str]]:
    """
    Ordered slug -> keywords mapping used for scoring.

    Default categories keep their built-in keywords, but only while they
    still exist in the categories passed in. Any other category (from the
    categories table) contributes the words of its name and label that are
    at least 3 characters long. A missing or empty category list means the
    built-in defaults.

    Args:
        categories: Rows/objects/dicts with slug, name and label
    """
    rows = list(categories or [])
    slugs = {_field(category, "slug") for category in rows}
    table = {
        slug: list(words)
        for slug, words in DEFAULT_KEYWORDS.items()
        if slug != UNCATEGORIZED and (not rows or slug in slugs)
    }

    for category in rows:
        slug = _field(category, "slug")
        if not slug or slug in DEFAULT_KEYWORDS:
            continue
        words: list[str] = []
        for source in (_field(category, "name"), _field(category, "label")):
            for word in _WORD.findall(source.lower()):
                if len(word) >= 3 and word not in words:
                    words.append(word)
        table[slug] = words

    table[UNCATEGORIZED] = []
    return table


def _keyword_pattern(keyword: str) -> re.Pattern[str]:
    return re.compile(rf"(?<![a-z0-9]){re.escape(keyword)}(?![a-z0-9])")


def keyword_hits(text: str, keywords: list[str]) -> list[str]:
    """Keywords that appear in text as whole words (case-insensitive)."""
    lowered = text.lower()
    return [kw for kw in keywords if _keyword_pattern(kw.lower()).search(lowered)]


def normalize_tags(text: str) -> list[str]:
    """First three words longer than three letters, lowercased."""
    words = _TAG_CLEANUP.sub(" ", text.lower()).split()
    return [word for word in words if len(word) > 3][:3]


def build_tags(hits: list[str], text: str) -> list[str]:
    """Up to two keyword hits followed by normalize_tags(), deduplicated, max 5."""
    tags: list[str] = []
    for tag in hits[:2] + normalize_tags(text):
        if tag not in tags:
            tags.append(tag)
    return tags[:MAX_TAGS_PER_NOTE]


def score_categories(text: str, keyword_table: dict[str, list[str]]) -> dict[str, list[str]]:
    """Slug -> keyword hits, only for categories with at least one hit (table order)."""
    scores = {}
    for slug, keywords in keyword_table.items():
        hits = keyword_hits(text, keywords)
        if hits:
            scores[slug] = hits
    return scores


def match_rules(text: str, keyword_table: dict[str, list[str]]) -> CategoryResult | None:
    """
    Pick the category with the strict maximum hit count.

    Returns:
        CategoryResult (source=rules) or None when nothing hits. Confidence
        is RULES_CONFIDENCE for a unique winner and RULES_TIED_CONFIDENCE
        when another category had the same count.
    """
    scores = score_categories(text, keyword_table)
    if not scores:
        return None

    best_count = max(len(hits) for hits in scores.values())
    leaders = [slug for slug, hits in scores.items() if len(hits) == best_count]
    winner = leaders[0]

    return CategoryResult(
        category=winner,
        confidence=RULES_CONFIDENCE if len(leaders) == 1 else RULES_TIED_CONFIDENCE,
        tags=build_tags(scores[winner], text),
        source=ClassificationSource.RULES,
    )


def rules_categorize(
    text: str,
    keyword_table: dict[str, list[str]] | None = None,
    no_hit_confidence: float = UNCATEGORIZED_CONFIDENCE,
) -> CategoryResult:
    """
    Keyword-only categorization, never returns None.

    Falls back to uncategorized at no_hit_confidence when nothing matches.
    """
    table = keyword_table if keyword_table is not None else build_keyword_table()
    result = match_rules(text, table)
    if result is not None:
        return result
    return CategoryResult.uncategorized(no_hit_confidence, tags=normalize_tags(text))


def categorize_note(
    text: str,
    categories: Iterable[Any] | None = None,
    backend: ClassifierBackend | None = None,
) -> CategoryResult:
    """Categorize one note entry with the configured backend."""
    if backend is None:
        from noteq.classification.backends import get_backend

        backend = get_backend()
    return backend.categorize(text, list(categories or []))


def analyze_and_categorize(
    text: str,
    categories: Iterable[Any] | None = None,
    backend: ClassifierBackend | None = None,
) -> list[CategorizedEntry]:
    """
    Categorize a note entry, letting the backend subdivide it first.

    The Gemini backend may return up to MAX_SPLIT_ENTRIES entries; the rules
    backend returns one entry per newline/semicolon segment. Blank entries
    are dropped.
    """
    if backend is None:
        from noteq.classification.backends import get_backend

        backend = get_backend()

    entries = backend.split_and_categorize(text, list(categories or []))
    entries = [entry for entry in entries if entry.text.strip()]
    return entries[:MAX_SPLIT_ENTRIES]
