"""Unit tests for keyword category assignment"""

from __future__ import annotations

from noteq.classification.backends import RulesBackend
from noteq.classification.categorizer import (
    analyze_and_categorize,
    build_keyword_table,
    keyword_hits,
    match_rules,
    normalize_tags,
    rules_categorize,
)
from noteq.classification.models import ClassificationSource


def test_missing_eggs_is_grocery():
    table = {"grocery": ["eggs", "milk", "buy"], "uncategorized": []}

    result = rules_categorize("we are missing eggs at home", table)

    assert result.category == "grocery"
    assert result.confidence == 0.9
    assert result.source == ClassificationSource.RULES


def test_unique_winner_has_high_confidence():
    result = rules_categorize("buy milk and eggs")

    assert result.category == "grocery"
    assert result.confidence == 0.9
    assert result.tags == ["milk", "eggs"]


def test_tie_goes_to_first_declared_category():
    # one grocery hit ("buy"), one tasks hit ("call")
    result = rules_categorize("buy stamps and call")

    assert result.category == "grocery"
    assert result.confidence == 0.72


def test_more_hits_beat_declaration_order():
    result = rules_categorize("buy the meeting notes for the client roadmap")

    assert result.category == "work"


def test_no_hits_is_uncategorized_low_confidence():
    result = rules_categorize("sunset photo from the pier")

    assert result.category == "uncategorized"
    assert result.confidence < 0.35
    assert result.tags == ["sunset", "photo", "from"]


def test_keywords_match_whole_words_only():
    assert keyword_hits("the buyer recalled", ["buy", "call"]) == []
    assert keyword_hits("Buy, then CALL.", ["buy", "call"]) == ["buy", "call"]
    assert match_rules("subscriptions galore", build_keyword_table()) is None


def test_custom_categories_use_name_and_label_words():
    table = build_keyword_table(
        [
            {"slug": "grocery", "name": "Grocery", "label": "Groceries"},
            {"slug": "garden", "name": "Garden", "label": "Yard work"},
            {"slug": "uncategorized", "name": "Uncategorized", "label": "Other"},
        ]
    )

    assert table["garden"] == ["garden", "yard", "work"]
    assert "milk" in table["grocery"]
    assert list(table)[-1] == "uncategorized"
    assert rules_categorize("mow the yard", table).category == "garden"


def test_normalize_tags():
    assert normalize_tags("Call the Dentist, tomorrow about crowns!") == ["call", "dentist", "tomorrow"]


def test_rules_backend_splits_per_segment():
    entries = analyze_and_categorize(
        "budget review\nsunset photo", None, RulesBackend()
    )

    assert [e.text for e in entries] == ["budget review", "sunset photo"]
    assert entries[0].category == "finance"
    assert entries[1].category == "uncategorized"
    assert entries[1].confidence == 0.25


def test_deleted_default_category_loses_its_keywords():
    remaining = [
        {"slug": "tasks", "name": "Tasks", "label": "Tasks"},
        {"slug": "uncategorized", "name": "Uncategorized", "label": "Other"},
    ]
    table = build_keyword_table(remaining)

    assert list(table) == ["tasks", "uncategorized"]
    assert rules_categorize("milk is great", table).category == "uncategorized"
