"""
Result types shared by the intake pipeline and the classifier backends.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ClassificationSource(str, Enum):
    """Who produced a category decision."""

    RULES = "rules"
    AI = "ai"


class TaxonomyPolicy(str, Enum):
    """How a deployment organizes captured notes (never both at once)."""

    CATEGORIES = "categories"  # one category per note
    LABELS = "labels"  # zero or more labels per note and todo


@dataclass
class IntakeResult:
    """Free text split into note entries and todo phrases (both deduplicated)."""

    notes: list[str] = field(default_factory=list)
    todos: list[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.notes and not self.todos


@dataclass
class CategoryResult:
    """Category decision for one piece of text."""

    category: str
    confidence: float
    tags: list[str] = field(default_factory=list)
    source: ClassificationSource = ClassificationSource.RULES

    @classmethod
    def uncategorized(cls, confidence: float, tags: list[str] | None = None) -> CategoryResult:
        """Factory for the no-match result."""
        return cls(
            category="uncategorized",
            confidence=confidence,
            tags=list(tags or []),
            source=ClassificationSource.RULES,
        )


@dataclass
class CategorizedEntry:
    """One note entry with its category decision, ready to persist."""

    text: str
    category: str
    confidence: float
    tags: list[str] = field(default_factory=list)
    source: ClassificationSource = ClassificationSource.RULES

    @classmethod
    def from_result(cls, text: str, result: CategoryResult) -> CategorizedEntry:
        return cls(
            text=text,
            category=result.category,
            confidence=result.confidence,
            tags=list(result.tags),
            source=result.source,
        )
