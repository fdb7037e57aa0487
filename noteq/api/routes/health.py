"""Health check endpoints for the NoteQ API.

- /health - Service health including classifier readiness
- /health/db - Database connection pool health
"""

from __future__ import annotations

import os
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter

from noteq.config import APP_VERSION, TAXONOMY_POLICY, USE_LLM

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> dict[str, Any]:
    """Health check endpoint.

    Reports whether Gemini credentials are present (no API call is made).
    """
    has_api_key = bool(os.getenv("GOOGLE_API_KEY"))
    has_project = bool(os.getenv("GOOGLE_CLOUD_PROJECT"))

    return {
        "status": "healthy",
        "service": "NoteQ API",
        "version": APP_VERSION,
        "timestamp": datetime.now(UTC).isoformat(),
        "taxonomy": TAXONOMY_POLICY,
        "llm": {
            "enabled": USE_LLM,
            "ready": USE_LLM and (has_api_key or has_project),
            "google_api_key": has_api_key,
            "google_cloud_project": has_project,
        },
    }


@router.get("/health/db")
async def database_health() -> dict[str, Any]:
    """
    Database health check endpoint.

    Alerts if pool usage exceeds 80%.
    """
    from noteq.infrastructure.database import get_pool_stats

    stats = get_pool_stats()
    usage_percent = stats["usage_percent"]

    return {
        "status": "degraded" if usage_percent > 80 else "healthy",
        "pool": stats,
        "warning": "Pool usage high" if usage_percent > 80 else None,
    }
