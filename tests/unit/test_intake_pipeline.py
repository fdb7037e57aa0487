"""Unit tests for segmenting, todo extraction and intake classification"""

from __future__ import annotations

import pytest

from noteq.classification.backends import RulesBackend
from noteq.classification.intake import classify_intake, looks_like_todo
from noteq.classification.segmenter import normalize_line, split_segments
from noteq.classification.todo_extractor import (
    cleanup_todo,
    extract_todo_items,
    heuristic_todo,
)


class ListBackend(RulesBackend):
    """Rules backend whose todo extraction returns a fixed list."""

    def __init__(self, todos):
        self.todos = todos

    def extract_todos(self, segment):
        return list(self.todos)


# --- segmenter ---


def test_split_segments_on_newlines_and_semicolons():
    assert split_segments("Need eggs\n\nCall mom; idea: app") == ["Need eggs", "Call mom", "idea: app"]


def test_split_segments_blank_input():
    assert split_segments("") == []
    assert split_segments("   ") == []


def test_split_segments_only_separators_keeps_input():
    assert split_segments(" ;\n; ") == [";\n;"]


@pytest.mark.parametrize(
    "text",
    [
        "Need eggs\n\nCall mom; idea: app",
        "  one  ;two;;\n\n three \n",
        "single line with   inner   spaces",
        " ;\n; ",
        ";;;",
    ],
)
def test_split_segments_is_stable(text):
    segments = split_segments(text)

    assert split_segments("\n".join(segments)) == segments
    assert split_segments(";".join(segments)) == segments
    for segment in segments:
        assert split_segments(segment) == [segment]


def test_normalize_line_collapses_whitespace():
    assert normalize_line("  buy \t  milk  ") == "buy milk"


# --- todo extraction ---


@pytest.mark.parametrize(
    "segment,expected",
    [
        ("Need eggs", "Buy eggs"),
        ("we are out of some coffee", "Buy coffee"),
        ("missing batteries", "Buy batteries"),
        ("pick up dry cleaning", "Buy dry cleaning"),
        ("Call the dentist tomorrow", "Call the dentist tomorrow"),
        ("please email Sarah the slides", "Email Sarah the slides"),
        ("lovely weather today", None),
    ],
)
def test_heuristic_todo(segment, expected):
    assert heuristic_todo(segment) == expected


def test_cleanup_todo_strips_trailing_periods():
    assert cleanup_todo("  Buy   milk... ") == "Buy milk"
    assert cleanup_todo("Call mom . .") == "Call mom"


def test_extract_todo_items_caps_and_cleans():
    backend = ListBackend(["One.", "Two", "", "   ", "Three", "Four", "Five", "Six", "Seven"])

    items = extract_todo_items("anything", backend)

    assert items == ["One", "Two", "Three", "Four", "Five"]
    assert all(not item.endswith(".") for item in items)


def test_extract_todo_items_no_match():
    assert extract_todo_items("a quiet evening", RulesBackend()) == []


# --- intake ---


def test_classify_intake_mixed_input():
    result = classify_intake(
        "Need eggs\nCall the dentist tomorrow\nIdea: build a birdhouse", RulesBackend()
    )

    assert result.notes == ["Idea: build a birdhouse"]
    assert result.todos == ["Buy eggs", "Call the dentist tomorrow"]


def test_classify_intake_deduplicates_in_order():
    result = classify_intake("Need eggs; need eggs\nsunset photo\nsunset photo", RulesBackend())

    assert result.todos == ["Buy eggs"]
    assert result.notes == ["sunset photo"]


def test_classify_intake_todo_hint_keeps_segment():
    # no heuristic rule applies, but the hint marks it as a todo
    result = classify_intake("remember the passport renewal", RulesBackend())

    assert result.todos == ["remember the passport renewal"]
    assert result.notes == []


def test_classify_intake_never_drops_input():
    result = classify_intake(";;  ;", RulesBackend())

    assert result.notes == [";; ;"]
    assert result.todos == []


def test_classify_intake_blank_is_empty():
    assert classify_intake("   ", RulesBackend()).is_empty()


def test_looks_like_todo():
    assert looks_like_todo("don't forget the keys")
    assert looks_like_todo("Pay rent")
    assert not looks_like_todo("repayment plan notes")
