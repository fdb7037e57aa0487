"""Integration tests for CaptureService against a real SQLite file"""

from __future__ import annotations

import sqlite3

import pytest

from noteq.capture.service import (
    CaptureService,
    InvalidCaptureError,
    NoteNotFoundError,
    resolve_taxonomy_policy,
)
from noteq.classification.backends import RulesBackend
from noteq.classification.gemini_backend import GeminiBackend
from noteq.classification.models import TaxonomyPolicy
from noteq.observability.telemetry import get_counter
from noteq.storage import LabelRepository, NoteCreate, NoteRepository, TodoRepository, UserRepository


class BrokenModel:
    def generate_content(self, prompt, **kwargs):
        raise RuntimeError("model unreachable")


@pytest.fixture
def user_id():
    return UserRepository.upsert("Owner@Example.com", name="Owner").id


@pytest.mark.parametrize(
    "value,expected",
    [
        ("labels", TaxonomyPolicy.LABELS),
        (" Categories ", TaxonomyPolicy.CATEGORIES),
        ("both", TaxonomyPolicy.CATEGORIES),
        (None, TaxonomyPolicy.CATEGORIES),
        (TaxonomyPolicy.LABELS, TaxonomyPolicy.LABELS),
    ],
)
def test_resolve_taxonomy_policy(value, expected):
    assert resolve_taxonomy_policy(value) == expected


def test_user_emails_are_lowercased(user_id):
    again = UserRepository.upsert("owner@example.com", name="Renamed")

    assert again.id == user_id
    assert again.email == "owner@example.com"
    assert again.name == "Renamed"


def test_capture_counts_and_result(user_id):
    service = CaptureService(RulesBackend(), "categories")

    result = service.capture(user_id, "Need eggs; idea: podcast about maps")

    assert [n.text for n in result.notes] == ["idea: podcast about maps"]
    assert [t.content for t in result.todos] == ["Buy eggs"]
    assert get_counter("capture.success") == 1


def test_capture_rejects_empty(user_id):
    with pytest.raises(InvalidCaptureError):
        CaptureService(RulesBackend(), "categories").capture(user_id, "  ")


def test_capture_survives_unreachable_model(user_id):
    service = CaptureService(GeminiBackend(model=BrokenModel()), "labels")

    result = service.capture(user_id, "client meeting notes\nneed eggs")

    assert [n.text for n in result.notes] == ["client meeting notes"]
    assert [lb.name for lb in result.notes[0].labels] == ["Work"]
    assert [t.content for t in result.todos] == ["Buy eggs"]
    assert get_counter("classifier.gemini.labels.error") >= 1


def test_categories_capture_survives_unreachable_model(user_id):
    service = CaptureService(GeminiBackend(model=BrokenModel()), "categories")

    result = service.capture(user_id, "sunset photo")

    assert result.notes[0].category_slug == "uncategorized"
    assert result.notes[0].confidence == 0.3


def test_extract_todos_labels_new_todos_under_labels_policy(user_id):
    note = NoteRepository.create(NoteCreate(user_id=user_id, text="need milk; call the bank"))
    service = CaptureService(RulesBackend(), "labels")

    todos = service.extract_todos_from_note(user_id, note.id)

    assert [t.content for t in todos] == ["Buy milk", "Call the bank"]
    stored = {t.content: t for t in TodoRepository.list_by_user(user_id)}
    assert [lb.name for lb in stored["Buy milk"].labels] == ["Shopping"]
    assert all(t.source_note_id == note.id for t in stored.values())


def test_extract_todos_from_other_users_note(user_id):
    note = NoteRepository.create(NoteCreate(user_id=user_id, text="need milk"))
    stranger = UserRepository.upsert("stranger@example.com").id

    with pytest.raises(NoteNotFoundError):
        CaptureService(RulesBackend(), "categories").extract_todos_from_note(stranger, note.id)


def test_create_todo_checks_source_note(user_id):
    service = CaptureService(RulesBackend(), "categories")

    with pytest.raises(InvalidCaptureError, match="Source note not found"):
        service.create_todo(user_id, "Frame it", source_note_id="missing")


def test_apply_auto_labels_never_creates_labels(user_id):
    NoteRepository.create(NoteCreate(user_id=user_id, text="doctor appointment today"))
    LabelRepository.upsert(user_id, "health")
    service = CaptureService(RulesBackend(), "categories")

    summary = service.apply_auto_labels(user_id)

    assert summary.note_links_added == 1
    assert summary.labels_created == 0
    assert [lb.name for lb in LabelRepository.list_by_user(user_id)] == ["Health"]

    # labelled notes are not scanned again
    assert service.apply_auto_labels(user_id).notes_scanned == 0


def test_failed_capture_stores_nothing(user_id, monkeypatch):
    original_create = NoteRepository.create
    calls = []

    def create_then_fail(note, conn=None):
        calls.append(note.text)
        if len(calls) == 2:
            raise sqlite3.IntegrityError("FOREIGN KEY constraint failed")
        return original_create(note, conn=conn)

    monkeypatch.setattr(NoteRepository, "create", staticmethod(create_then_fail))
    service = CaptureService(RulesBackend(), "categories")

    with pytest.raises(sqlite3.IntegrityError):
        service.capture(user_id, "lovely weather\nsunset photo\nneed eggs")

    assert calls == ["lovely weather", "sunset photo"]
    assert NoteRepository.list_by_user(user_id) == []
    assert TodoRepository.list_by_user(user_id) == []


def test_labels_capture_writes_shared_label_once(user_id):
    service = CaptureService(RulesBackend(), "labels")

    result = service.capture(user_id, "grocery store run\nbuy milk")

    assert [lb.name for lb in result.notes[0].labels] == ["Shopping"]
    assert [lb.name for lb in result.todos[0].labels] == ["Shopping"]
    assert [lb.name for lb in LabelRepository.list_by_user(user_id)] == ["Shopping"]
