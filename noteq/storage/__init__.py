"""Storage - domain models and repositories"""

from noteq.storage.categories import CategoryRepository
from noteq.storage.labels import LabelRepository
from noteq.storage.models import (
    Category,
    Label,
    LabelWithCounts,
    Note,
    NoteCreate,
    Todo,
    User,
)
from noteq.storage.notes import NoteRepository
from noteq.storage.todos import TodoRepository
from noteq.storage.users import UserRepository

__all__ = [
    # Models
    "Category",
    "Label",
    "LabelWithCounts",
    "Note",
    "NoteCreate",
    "Todo",
    "User",
    # Repositories
    "CategoryRepository",
    "LabelRepository",
    "NoteRepository",
    "TodoRepository",
    "UserRepository",
]
