"""
Classifier backends.

Every classification capability the intake pipeline needs goes through a
ClassifierBackend. RulesBackend is pure keyword/regex logic and is always
available; GeminiBackend (gemini_backend.py) adds LLM calls on top and falls
back to an embedded RulesBackend on any error.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from functools import lru_cache
from typing import Any

from noteq.classification.categorizer import build_keyword_table, rules_categorize
from noteq.classification.labeler import fallback_labels
from noteq.classification.models import CategorizedEntry, CategoryResult
from noteq.classification.segmenter import split_segments
from noteq.classification.todo_extractor import heuristic_todo
from noteq.infrastructure.settings import USE_LLM
from noteq.observability.logging import get_logger
from noteq.observability.telemetry import counter

logger = get_logger(__name__)


class ClassifierBackend(ABC):
    """Capability interface shared by the rules and model classifiers."""

    name: str = "abstract"

    @abstractmethod
    def extract_todos(self, segment: str) -> list[str]:
        """Raw todo phrases for one segment (cleaned and capped by the caller)."""

    @abstractmethod
    def categorize(self, text: str, categories: Sequence[Any]) -> CategoryResult:
        """One category decision for text."""

    @abstractmethod
    def split_and_categorize(self, text: str, categories: Sequence[Any]) -> list[CategorizedEntry]:
        """Optionally subdivide text and categorize each entry."""

    @abstractmethod
    def suggest_labels(self, text: str, existing: Sequence[str]) -> list[str]:
        """Label names for text, preferring existing ones."""


class RulesBackend(ClassifierBackend):
    """Keyword and regex heuristics only. Never performs I/O."""

    name = "rules"

    def extract_todos(self, segment: str) -> list[str]:
        phrase = heuristic_todo(segment)
        return [phrase] if phrase else []

    def categorize(self, text: str, categories: Sequence[Any]) -> CategoryResult:
        return rules_categorize(text, build_keyword_table(categories))

    def split_and_categorize(self, text: str, categories: Sequence[Any]) -> list[CategorizedEntry]:
        table = build_keyword_table(categories)
        return [
            CategorizedEntry.from_result(segment, rules_categorize(segment, table))
            for segment in split_segments(text)
        ]

    def suggest_labels(self, text: str, existing: Sequence[str]) -> list[str]:
        return fallback_labels(text, existing)


@lru_cache(maxsize=1)
def get_backend() -> ClassifierBackend:
    """
    Process-wide classifier backend.

    GeminiBackend when NOTEQ_USE_LLM=true and the model initialises,
    RulesBackend otherwise.

    Side Effects:
        - Initializes the shared Gemini model on first call (LLM enabled only)
    """
    if not USE_LLM:
        counter("classifier.backend.rules")
        logger.info("Classifier backend: rules (NOTEQ_USE_LLM disabled)")
        return RulesBackend()

    from noteq.classification.gemini_backend import GeminiBackend
    from noteq.llm.gemini import GeminiInitializationError, get_gemini_model

    try:
        model = get_gemini_model()
    except GeminiInitializationError as e:
        counter("classifier.backend.gemini_unavailable")
        logger.warning("Gemini unavailable, using rules backend: %s", e)
        return RulesBackend()

    counter("classifier.backend.gemini")
    logger.info("Classifier backend: gemini")
    return GeminiBackend(model=model)
