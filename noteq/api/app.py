"""FastAPI server for NoteQ"""

from __future__ import annotations

import sqlite3
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from noteq.api.errors import register_exception_handlers
from noteq.api.routes.categories import router as categories_router
from noteq.api.routes.health import router as health_router
from noteq.api.routes.labels import router as labels_router
from noteq.api.routes.notes import router as notes_router
from noteq.api.routes.todos import router as todos_router
from noteq.config import API_HOST, API_PORT, APP_VERSION, TAXONOMY_POLICY, is_development
from noteq.infrastructure.database import init_database, validate_schema
from noteq.observability.logging import get_logger
from noteq.observability.telemetry import log_event

app = FastAPI(title="NoteQ API", version=APP_VERSION)

logger = get_logger(__name__)

register_exception_handlers(app)

ALLOWED_ORIGINS: list[str] = []

# Allow localhost in development only
if is_development():
    ALLOWED_ORIGINS.extend(
        [
            "http://localhost:3000",
            "http://localhost:8000",
            "http://127.0.0.1:3000",
            "http://127.0.0.1:8000",
        ]
    )

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
)

app.include_router(health_router)
app.include_router(notes_router)
app.include_router(todos_router)
app.include_router(categories_router)
app.include_router(labels_router)


@app.on_event("startup")
def initialize_database() -> None:
    """Create the schema and seed categories before serving requests."""
    try:
        logger.info("Initializing database schema...")
        init_database()
        validate_schema()
        logger.info("Database initialization complete")
    except FileNotFoundError as e:
        logger.critical("Database file not found: %s", e)
        raise RuntimeError(f"Database initialization failed: {e}") from e
    except sqlite3.OperationalError as e:
        logger.critical("Database schema error: %s", e)
        raise RuntimeError(f"Database initialization failed: {e}") from e
    except Exception as e:
        logger.critical("Unexpected database initialization error: %s", e)
        raise RuntimeError(f"Database initialization failed: {e}") from e

    log_event("api.startup", service="noteq", version=APP_VERSION, taxonomy=TAXONOMY_POLICY)


@app.get("/")
def root() -> dict[str, Any]:
    return {
        "service": "NoteQ API",
        "version": APP_VERSION,
        "status": "running",
        "endpoints": {
            "health": "/health",
            "notes": "/api/notes",
            "todos": "/api/todos",
            "categories": "/api/categories",
            "labels": "/api/labels",
            "apply_auto_labels": "/api/labels/apply-auto",
        },
    }


def main() -> None:
    """Run the API with uvicorn (console entry point)."""
    import uvicorn

    uvicorn.run("noteq.api.app:app", host=API_HOST, port=API_PORT)
