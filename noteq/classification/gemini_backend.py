"""
Gemini classifier backend.

Each capability sends one prompt asking for JSON, validates the reply with a
pydantic schema and falls back to the embedded RulesBackend when anything
goes wrong (network, malformed JSON, schema mismatch). Nothing here raises
to callers.
"""

from __future__ import annotations

import json
import re
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, Field

from noteq.classification.backends import ClassifierBackend, RulesBackend
from noteq.classification.categorizer import (
    build_keyword_table,
    match_rules,
    normalize_tags,
    rules_categorize,
)
from noteq.classification.models import (
    CategorizedEntry,
    CategoryResult,
    ClassificationSource,
)
from noteq.classification.segmenter import split_segments
from noteq.classification.labeler import normalize_label_name
from noteq.classification.todo_extractor import cleanup_todo
from noteq.config import (
    LLM_PROMPT_MAX_CHARS,
    MAX_LABELS_PER_ITEM,
    MAX_SPLIT_ENTRIES,
    MAX_TAGS_PER_NOTE,
    MAX_TODOS_PER_SEGMENT,
    UNCATEGORIZED_FALLBACK_CONFIDENCE,
)
from noteq.infrastructure.settings import GEMINI_MODEL
from noteq.llm.gemini import get_gemini_model
from noteq.llm.retry import call_llm
from noteq.observability.logging import get_logger
from noteq.observability.telemetry import counter, log_event, time_block
from noteq.utils.redaction import redact, sanitize_for_prompt

logger = get_logger(__name__)

UNCATEGORIZED = "uncategorized"


class TodoListSchema(BaseModel):
    """Schema for todo extraction replies."""

    todos: list[str] = Field(default_factory=list)


class CategorySchema(BaseModel):
    """Schema for single-category replies. Confidence is clamped, not rejected."""

    category: str
    confidence: float = 0.5
    tags: list[str] = Field(default_factory=list)


class SplitEntrySchema(CategorySchema):
    text: str


class SplitSchema(BaseModel):
    """Schema for split-and-categorize replies."""

    entries: list[SplitEntrySchema] = Field(default_factory=list)


class LabelListSchema(BaseModel):
    """Schema for label suggestion replies."""

    labels: list[str] = Field(default_factory=list)


class GeminiBackend(ClassifierBackend):
    """
    LLM-backed classifier with a rules fallback.

    Keyword rules still run first for categorization; the model is only
    asked when no keyword hits.
    """

    name = "gemini"

    TODO_PROMPT = """Extract actionable todo items from a personal note.
Use concise verb-first tasks. If there are none, return an empty list.

Note: {text}

Respond with ONLY this JSON: {{"todos": ["..."]}}"""

    CATEGORY_PROMPT = """You classify personal notes into exactly one category.
Categories: {categories}

Note: {text}

Respond with ONLY this JSON:
{{"category": "<one of the categories>", "confidence": 0.0-1.0, "tags": ["up to 5 short lowercase tags"]}}"""

    SPLIT_PROMPT = """Split this personal note into separate entries when it mixes unrelated
topics (at most {max_entries}), otherwise return it as a single entry.
Classify each entry into exactly one category.
Categories: {categories}

Note: {text}

Respond with ONLY this JSON:
{{"entries": [{{"text": "...", "category": "...", "confidence": 0.0-1.0, "tags": ["..."]}}]}}"""

    LABEL_PROMPT = """Return labels for the text. Max {max_labels} labels, 1-2 words each, concise.
Prefer existing labels when relevant.

Existing labels: {existing}
Text: {text}

Respond with ONLY this JSON: {{"labels": ["..."]}}"""

    def __init__(self, model: Any = None, rules: RulesBackend | None = None):
        self._model = model
        self.rules = rules or RulesBackend()

    def _get_model(self):
        """Lazy-load the shared Gemini model."""
        if self._model is None:
            self._model = get_gemini_model()
        return self._model

    def _generate(self, prompt: str, operation: str) -> dict[str, Any]:
        """Call the model and return the decoded JSON object."""
        model = self._get_model()
        with time_block(f"classifier.gemini.{operation}"):
            response_text = call_llm(model, prompt, operation)
        data = self._parse_json(response_text)
        counter(f"classifier.gemini.{operation}.success")
        return data

    @staticmethod
    def _parse_json(response_text: str) -> dict[str, Any]:
        """Decode a JSON object, tolerating markdown code fences."""
        json_text = (response_text or "").strip()
        if json_text.startswith("```"):
            json_text = re.sub(r"^```(?:json)?\n?", "", json_text)
            json_text = re.sub(r"\n?```$", "", json_text)

        data = json.loads(json_text)
        if not isinstance(data, dict):
            raise ValueError(f"Expected JSON object, got {type(data).__name__}")
        return data

    def _log_failure(self, operation: str, text: str, error: Exception) -> None:
        counter(f"classifier.gemini.{operation}.error")
        logger.warning("Gemini %s failed, using rules fallback: %s", operation, error)
        log_event(
            "classifier.gemini.fallback",
            operation=operation,
            text_hash=redact(text),
            error=type(error).__name__,
            model=GEMINI_MODEL,
        )

    @staticmethod
    def _to_result(validated: CategorySchema, known: list[str]) -> CategoryResult:
        category = validated.category.strip().lower()
        if category not in known:
            category = UNCATEGORIZED
        tags = [tag.strip().lower() for tag in validated.tags if tag and tag.strip()]
        return CategoryResult(
            category=category,
            confidence=min(max(validated.confidence, 0.0), 1.0),
            tags=tags[:MAX_TAGS_PER_NOTE],
            source=ClassificationSource.AI,
        )

    def extract_todos(self, segment: str) -> list[str]:
        """
        Model todo phrases; empty output or any error uses the heuristic.

        Side Effects:
            - Calls Gemini API
        """
        prompt = self.TODO_PROMPT.format(
            text=sanitize_for_prompt(segment, max_length=LLM_PROMPT_MAX_CHARS)
        )
        try:
            validated = TodoListSchema.model_validate(self._generate(prompt, "todos"))
        except Exception as e:
            self._log_failure("todos", segment, e)
            return self.rules.extract_todos(segment)

        todos = [cleaned for cleaned in (cleanup_todo(item) for item in validated.todos) if cleaned]
        if not todos:
            return self.rules.extract_todos(segment)
        return todos[:MAX_TODOS_PER_SEGMENT]

    def categorize(self, text: str, categories: Sequence[Any]) -> CategoryResult:
        """
        Keyword rules first, then the model for texts without hits.

        Side Effects:
            - Calls Gemini API when no keyword matches
        """
        table = build_keyword_table(categories)
        ruled = match_rules(text, table)
        if ruled is not None:
            return ruled

        known = list(table.keys())
        prompt = self.CATEGORY_PROMPT.format(
            categories=",".join(known),
            text=sanitize_for_prompt(text, max_length=LLM_PROMPT_MAX_CHARS),
        )
        try:
            validated = CategorySchema.model_validate(self._generate(prompt, "categorize"))
        except Exception as e:
            self._log_failure("categorize", text, e)
            return CategoryResult.uncategorized(
                UNCATEGORIZED_FALLBACK_CONFIDENCE, tags=normalize_tags(text)
            )

        result = self._to_result(validated, known)
        log_event(
            "classifier.gemini.categorized",
            category=result.category,
            confidence=result.confidence,
            model=GEMINI_MODEL,
        )
        return result

    def split_and_categorize(self, text: str, categories: Sequence[Any]) -> list[CategorizedEntry]:
        """
        Let the model subdivide text into up to MAX_SPLIT_ENTRIES entries.

        Entries whose text hits a keyword keep the rules decision. On any
        failure, one rules entry per segment is returned.

        Side Effects:
            - Calls Gemini API
        """
        table = build_keyword_table(categories)
        known = list(table.keys())
        prompt = self.SPLIT_PROMPT.format(
            max_entries=MAX_SPLIT_ENTRIES,
            categories=",".join(known),
            text=sanitize_for_prompt(text, max_length=LLM_PROMPT_MAX_CHARS),
        )
        try:
            validated = SplitSchema.model_validate(self._generate(prompt, "split"))
            entries = [entry for entry in validated.entries if entry.text.strip()]
            if not entries:
                raise ValueError("Model returned no entries")
        except Exception as e:
            self._log_failure("split", text, e)
            return [
                CategorizedEntry.from_result(
                    segment,
                    rules_categorize(segment, table, UNCATEGORIZED_FALLBACK_CONFIDENCE),
                )
                for segment in split_segments(text)
            ]

        result = []
        for entry in entries[:MAX_SPLIT_ENTRIES]:
            entry_text = entry.text.strip()
            decision = match_rules(entry_text, table) or self._to_result(entry, known)
            result.append(CategorizedEntry.from_result(entry_text, decision))
        return result

    def suggest_labels(self, text: str, existing: Sequence[str]) -> list[str]:
        """
        Model label suggestions; keyword labels on any error.

        Side Effects:
            - Calls Gemini API
        """
        prompt = self.LABEL_PROMPT.format(
            max_labels=MAX_LABELS_PER_ITEM,
            existing=sanitize_for_prompt(", ".join(existing), max_length=500) or "none",
            text=sanitize_for_prompt(text, max_length=LLM_PROMPT_MAX_CHARS),
        )
        try:
            validated = LabelListSchema.model_validate(self._generate(prompt, "labels"))
        except Exception as e:
            self._log_failure("labels", text, e)
            return self.rules.suggest_labels(text, existing)

        labels = [normalize_label_name(label) for label in validated.labels if label]
        return [label for label in labels if label][:MAX_LABELS_PER_ITEM]
