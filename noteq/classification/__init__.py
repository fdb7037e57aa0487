"""
Intake classification - segmenting, todo extraction, categories and labels.
"""

from noteq.classification.backends import ClassifierBackend, RulesBackend, get_backend
from noteq.classification.categorizer import analyze_and_categorize, categorize_note
from noteq.classification.intake import classify_intake
from noteq.classification.labeler import normalize_label_name, pick_label_color, suggest_labels
from noteq.classification.models import (
    CategorizedEntry,
    CategoryResult,
    ClassificationSource,
    IntakeResult,
)

__all__ = [
    "CategorizedEntry",
    "CategoryResult",
    "ClassificationSource",
    "ClassifierBackend",
    "IntakeResult",
    "RulesBackend",
    "analyze_and_categorize",
    "categorize_note",
    "classify_intake",
    "get_backend",
    "normalize_label_name",
    "pick_label_color",
    "suggest_labels",
]
