"""NoteQ - capture notes and todos, classified by keyword rules or Gemini"""

from __future__ import annotations

__version__ = "1.0.0"
