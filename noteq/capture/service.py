"""Capture service layer - facade between API routes, the intake pipeline
and the repositories.

Owns the taxonomy policy: a deployment either categorizes every captured
note or auto-labels every captured note and todo.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from functools import lru_cache

from noteq.classification.backends import ClassifierBackend, get_backend
from noteq.classification.categorizer import analyze_and_categorize, normalize_tags
from noteq.classification.intake import classify_intake
from noteq.classification.labeler import suggest_labels
from noteq.classification.models import (
    CategorizedEntry,
    IntakeResult,
    TaxonomyPolicy,
)
from noteq.classification.segmenter import split_segments
from noteq.classification.todo_extractor import extract_todo_items
from noteq.config import (
    AUTO_LABEL_SCAN_LIMIT,
    IMAGE_NOTE_CONFIDENCE,
    IMAGE_NOTE_PLACEHOLDER,
    TAXONOMY_POLICY,
)
from noteq.infrastructure.database import db_transaction
from noteq.observability.logging import get_logger
from noteq.observability.telemetry import counter, log_event, time_block
from noteq.storage import (
    CategoryRepository,
    LabelRepository,
    Note,
    NoteCreate,
    NoteRepository,
    Todo,
    TodoRepository,
)
from noteq.utils.html import sanitize_html
from noteq.utils.redaction import redact

logger = get_logger(__name__)


class CaptureServiceError(Exception):
    """Base exception for capture service errors."""

    pass


class InvalidCaptureError(CaptureServiceError):
    """Submission is missing required content or references something invalid."""

    pass


class NoteNotFoundError(CaptureServiceError):
    """Note not found (or not owned by the user)."""

    pass


@dataclass
class CaptureResult:
    """Notes created by one capture plus the user's current todo list."""

    notes: list[Note] = field(default_factory=list)
    todos: list[Todo] = field(default_factory=list)


@dataclass
class AutoLabelSummary:
    """Outcome of an auto-label pass."""

    notes_scanned: int = 0
    todos_scanned: int = 0
    note_links_added: int = 0
    todo_links_added: int = 0
    labels_created: int = 0


def resolve_taxonomy_policy(value: str | TaxonomyPolicy | None) -> TaxonomyPolicy:
    """Parse NOTEQ_TAXONOMY; unknown values fall back to categories."""
    if isinstance(value, TaxonomyPolicy):
        return value
    try:
        return TaxonomyPolicy((value or TaxonomyPolicy.CATEGORIES.value).strip().lower())
    except ValueError:
        logger.warning("Unknown taxonomy policy %r, using categories", value)
        return TaxonomyPolicy.CATEGORIES


class CaptureService:
    """
    Service layer for capturing and organizing notes and todos.

    All methods take the internal user id and only touch that user's rows.
    """

    def __init__(
        self,
        backend: ClassifierBackend | None = None,
        policy: str | TaxonomyPolicy | None = None,
    ):
        self.backend = backend or get_backend()
        self.policy = resolve_taxonomy_policy(policy if policy is not None else TAXONOMY_POLICY)

    # ------------------------------------------------------------------
    # Capture
    # ------------------------------------------------------------------

    def capture(
        self,
        user_id: str,
        text: str,
        text_html: str | None = None,
        image_data: str | None = None,
    ) -> CaptureResult:
        """
        Run a free-text submission through the intake pipeline and persist it.

        The sanitized HTML and the image are stored on the first created
        note. An image with no note text becomes an "Image note".

        Args:
            user_id: Internal user id
            text: Plain text of the submission (may be blank with an image)
            text_html: Optional rich-text rendering
            image_data: Optional data URL of an attached image

        Returns:
            CaptureResult with the created notes (newest first) and the
            user's todo list

        Raises:
            InvalidCaptureError: If there is neither text nor an image

        Side Effects:
            - Inserts notes and todos (and labels under the labels policy)
              in a single transaction; nothing is stored if any write fails
            - May call the LLM (Gemini backend only)
        """
        normalized_text = (text or "").strip()
        if not normalized_text and not image_data:
            raise InvalidCaptureError("Either text or an image is required")

        safe_html = sanitize_html(text_html) or None

        with time_block("capture.total"):
            intake = classify_intake(normalized_text, self.backend) if normalized_text else IntakeResult()

            if self.policy == TaxonomyPolicy.CATEGORIES:
                entries = self._categorize_entries(intake.notes)
            else:
                entries = [
                    CategorizedEntry(
                        text=note_text, category="", confidence=0.0, tags=normalize_tags(note_text)
                    )
                    for note_text in intake.notes
                ]

            if not entries and image_data:
                entries = [self._image_entry()]

            note_labels: list[list[str]] = []
            todo_labels: list[list[str]] = []
            if self.policy == TaxonomyPolicy.LABELS:
                note_labels, todo_labels = self._plan_labels(
                    user_id, [entry.text for entry in entries], intake.todos
                )

            with db_transaction() as conn:
                created_notes = self._persist_notes(user_id, entries, safe_html, image_data, conn)
                created_todos = TodoRepository.create_many(user_id, intake.todos, conn=conn)
                if self.policy == TaxonomyPolicy.LABELS:
                    self._attach_labels(
                        user_id, created_notes, note_labels, created_todos, todo_labels, conn
                    )

        counter("capture.success")
        log_event(
            "capture.completed",
            user_id=user_id,
            text_hash=redact(normalized_text),
            notes=len(created_notes),
            todos=len(created_todos),
            policy=self.policy.value,
            backend=self.backend.name,
        )

        return CaptureResult(
            notes=NoteRepository.list_by_ids(user_id, [note.id for note in created_notes]),
            todos=TodoRepository.list_by_user(user_id),
        )

    def _categorize_entries(self, note_texts: list[str]) -> list[CategorizedEntry]:
        if not note_texts:
            return []
        categories = CategoryRepository.list_for_classification()
        entries: list[CategorizedEntry] = []
        for note_text in note_texts:
            entries.extend(analyze_and_categorize(note_text, categories, self.backend))
        return entries

    def _image_entry(self) -> CategorizedEntry:
        category = "uncategorized" if self.policy == TaxonomyPolicy.CATEGORIES else ""
        return CategorizedEntry(
            text=IMAGE_NOTE_PLACEHOLDER,
            category=category,
            confidence=IMAGE_NOTE_CONFIDENCE,
        )

    def _persist_notes(
        self,
        user_id: str,
        entries: list[CategorizedEntry],
        text_html: str | None,
        image_data: str | None,
        conn: sqlite3.Connection,
    ) -> list[Note]:
        created = []
        for index, entry in enumerate(entries):
            created.append(
                NoteRepository.create(
                    NoteCreate(
                        user_id=user_id,
                        text=entry.text,
                        text_html=text_html if index == 0 else None,
                        image_data=image_data if index == 0 else None,
                        category_slug=entry.category or None,
                        confidence=entry.confidence,
                        tags=entry.tags,
                        source=entry.source,
                    ),
                    conn=conn,
                )
            )
        return created

    def _plan_labels(
        self, user_id: str, note_texts: list[str], todo_texts: list[str]
    ) -> tuple[list[list[str]], list[list[str]]]:
        """
        Label names for each new note and todo, computed before any write.

        Names suggested for earlier items count as existing for later ones.

        Side Effects:
            - May call the LLM once per item (Gemini backend only)
        """
        existing = [label.name for label in LabelRepository.list_by_user(user_id)]

        def plan(texts: list[str]) -> list[list[str]]:
            planned = []
            for text in texts:
                names = suggest_labels(text, existing, self.backend)
                existing.extend(name for name in names if name not in existing)
                planned.append(names)
            return planned

        return plan(note_texts), plan(todo_texts)

    def _attach_labels(
        self,
        user_id: str,
        notes: list[Note],
        note_labels: list[list[str]],
        todos: list[Todo],
        todo_labels: list[list[str]],
        conn: sqlite3.Connection,
    ) -> int:
        """
        Create (if needed) and attach planned labels inside the caller's transaction.

        Returns:
            Number of links added
        """
        links = 0
        items = [
            (note.id, names, LabelRepository.attach_to_note)
            for note, names in zip(notes, note_labels)
        ]
        items += [
            (todo.id, names, LabelRepository.attach_to_todo)
            for todo, names in zip(todos, todo_labels)
        ]

        for item_id, names, attach in items:
            for name in names:
                label = LabelRepository.upsert(user_id, name, conn=conn)
                if label is not None and attach(item_id, label.id, conn=conn):
                    links += 1

        counter("capture.labels_attached", links)
        return links

    # ------------------------------------------------------------------
    # Todos
    # ------------------------------------------------------------------

    def extract_todos_from_note(self, user_id: str, note_id: str) -> list[Todo]:
        """
        Re-run todo extraction on a stored note.

        Returns:
            The todos created (source_note_id set to the note)

        Raises:
            NoteNotFoundError: If the user has no such note
        """
        note = NoteRepository.get(user_id, note_id)
        if note is None:
            raise NoteNotFoundError(f"Note not found: {note_id}")

        phrases: list[str] = []
        for segment in split_segments(note.text):
            for phrase in extract_todo_items(segment, self.backend):
                if phrase not in phrases:
                    phrases.append(phrase)

        todo_labels: list[list[str]] = []
        if self.policy == TaxonomyPolicy.LABELS:
            _, todo_labels = self._plan_labels(user_id, [], phrases)

        with db_transaction() as conn:
            todos = TodoRepository.create_many(user_id, phrases, source_note_id=note.id, conn=conn)
            if todos and todo_labels:
                self._attach_labels(user_id, [], [], todos, todo_labels, conn)

        counter("capture.note_todos_extracted", len(todos))
        logger.info("Extracted %d todos from note %s", len(todos), note_id)
        return todos

    def create_todo(self, user_id: str, content: str, source_note_id: str | None = None) -> Todo:
        """
        Create a todo by hand.

        Raises:
            InvalidCaptureError: If content is blank or source_note_id is not
                one of the user's notes
        """
        if not content or not content.strip():
            raise InvalidCaptureError("content is required")
        if source_note_id and not NoteRepository.exists(user_id, source_note_id):
            raise InvalidCaptureError("Source note not found")

        todo = TodoRepository.create(user_id, content.strip(), source_note_id)
        return TodoRepository.get(user_id, todo.id) or todo

    # ------------------------------------------------------------------
    # Labels
    # ------------------------------------------------------------------

    def apply_auto_labels(self, user_id: str) -> AutoLabelSummary:
        """
        Link existing labels to the user's unlabeled notes and todos.

        Scans up to AUTO_LABEL_SCAN_LIMIT notes and todos each. Suggestions
        that don't match an existing label are ignored; no label is created.

        Side Effects:
            - Inserts note_labels / todo_labels rows
            - May call the LLM once per scanned item (Gemini backend only)
        """
        labels = LabelRepository.list_by_user(user_id)
        names = [label.name for label in labels]
        by_name = {label.name.lower(): label.id for label in labels}

        notes = NoteRepository.list_unlabeled(user_id, AUTO_LABEL_SCAN_LIMIT)
        todos = TodoRepository.list_unlabeled(user_id, AUTO_LABEL_SCAN_LIMIT)
        summary = AutoLabelSummary(notes_scanned=len(notes), todos_scanned=len(todos))

        if not by_name:
            return summary

        with time_block("labels.apply_auto"):
            for note in notes:
                summary.note_links_added += self._link_existing(
                    note.id, note.text, names, by_name, LabelRepository.attach_to_note
                )
            for todo in todos:
                summary.todo_links_added += self._link_existing(
                    todo.id, todo.content, names, by_name, LabelRepository.attach_to_todo
                )

        log_event(
            "labels.apply_auto",
            user_id=user_id,
            notes_scanned=summary.notes_scanned,
            todos_scanned=summary.todos_scanned,
            note_links_added=summary.note_links_added,
            todo_links_added=summary.todo_links_added,
        )
        return summary

    def _link_existing(self, item_id, text, names, by_name, attach) -> int:
        text = (text or "").strip()
        if not text:
            return 0

        added = 0
        for name in suggest_labels(text, names, self.backend):
            label_id = by_name.get(name.lower())
            if label_id and attach(item_id, label_id):
                added += 1
        return added


@lru_cache(maxsize=1)
def get_capture_service() -> CaptureService:
    """Process-wide CaptureService (FastAPI dependency)."""
    return CaptureService()


__all__ = [
    "AutoLabelSummary",
    "CaptureResult",
    "CaptureService",
    "CaptureServiceError",
    "InvalidCaptureError",
    "NoteNotFoundError",
    "get_capture_service",
    "resolve_taxonomy_policy",
]
