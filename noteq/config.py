"""Centralized configuration for the NoteQ backend.

Re-exports everything from noteq.infrastructure.settings so existing imports
continue to work, then adds typed constants for database, intake pipeline,
classification and API settings.  Environment variable overrides use safe
defaults so the app starts without extra env configuration.
"""

from __future__ import annotations

import os

from noteq.infrastructure.settings import *  # noqa: F401, F403 re-export existing

# --- App ---
APP_VERSION: str = "1.0.0"

# --- Database ---
DB_POOL_SIZE: int = int(os.getenv("NOTEQ_DB_POOL_SIZE", "5"))
DB_POOL_TIMEOUT: float = float(os.getenv("NOTEQ_DB_POOL_TIMEOUT", "5.0"))
DB_CONNECT_TIMEOUT: float = float(os.getenv("NOTEQ_DB_CONNECT_TIMEOUT", "30.0"))
DB_TEMP_CONN_MAX: int = int(os.getenv("NOTEQ_DB_TEMP_CONN_MAX", "10"))
DB_RETRY_MAX: int = int(os.getenv("NOTEQ_DB_RETRY_MAX", "5"))
DB_RETRY_BASE_DELAY: float = float(os.getenv("NOTEQ_DB_RETRY_BASE_DELAY", "0.1"))
DB_RETRY_MAX_DELAY: float = float(os.getenv("NOTEQ_DB_RETRY_MAX_DELAY", "2.0"))
DB_RETRY_JITTER: float = float(os.getenv("NOTEQ_DB_RETRY_JITTER", "0.1"))

# --- Intake Pipeline ---
NOTE_TEXT_MAX_CHARS: int = 4000
NOTE_HTML_MAX_CHARS: int = 20_000
NOTE_IMAGE_MAX_CHARS: int = 3_000_000
MAX_TODOS_PER_SEGMENT: int = 5
MAX_SPLIT_ENTRIES: int = 6
MAX_LABELS_PER_ITEM: int = 3
MAX_TAGS_PER_NOTE: int = 5
IMAGE_NOTE_PLACEHOLDER: str = "Image note"

# --- Classification confidence ---
RULES_CONFIDENCE: float = 0.9
RULES_TIED_CONFIDENCE: float = 0.72
UNCATEGORIZED_CONFIDENCE: float = 0.25
UNCATEGORIZED_FALLBACK_CONFIDENCE: float = 0.3
IMAGE_NOTE_CONFIDENCE: float = 0.2

# --- LLM ---
LLM_PROMPT_MAX_CHARS: int = 4000
LLM_MAX_RETRIES: int = int(os.getenv("NOTEQ_LLM_MAX_RETRIES", "3"))

# --- API ---
NOTES_LIST_LIMIT: int = 300
TODOS_LIST_LIMIT: int = 200
LABEL_ITEMS_LIMIT: int = 300
AUTO_LABEL_SCAN_LIMIT: int = 500
NAME_MAX_CHARS: int = 40
