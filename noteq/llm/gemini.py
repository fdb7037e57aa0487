"""
Gemini Model Manager - shared model instance for the Gemini classifier backend.

Supports two SDKs:
  1. Vertex AI (deployed) - uses GOOGLE_CLOUD_PROJECT + service account
  2. google-generativeai (local dev) - uses GOOGLE_API_KEY
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from noteq.infrastructure.settings import (
    GEMINI_LOCATION,
    GEMINI_MODEL,
    GEMINI_TEMPERATURE,
    GOOGLE_API_KEY,
    GOOGLE_CLOUD_PROJECT,
)
from noteq.observability.logging import get_logger

logger = get_logger(__name__)


class GeminiInitializationError(RuntimeError):
    """Raised when Gemini model cannot be initialized."""


def json_generation_config() -> dict[str, Any]:
    """Generation settings shared by every prompt: JSON output, low temperature."""
    return {
        "temperature": GEMINI_TEMPERATURE,
        "response_mime_type": "application/json",
    }


@lru_cache(maxsize=1)
def get_gemini_model():
    """
    Get or create the shared Gemini model instance.

    Tries Vertex AI first when GOOGLE_CLOUD_PROJECT is set, then
    google-generativeai with GOOGLE_API_KEY.

    Raises:
        GeminiInitializationError: If no SDK/credentials combination works
    """
    if GOOGLE_CLOUD_PROJECT:
        try:
            import vertexai
            from vertexai.generative_models import GenerativeModel

            vertexai.init(project=GOOGLE_CLOUD_PROJECT, location=GEMINI_LOCATION)
            model = GenerativeModel(GEMINI_MODEL)

            logger.info(
                "Initialized Gemini model (Vertex AI): project=%s, location=%s, model=%s",
                GOOGLE_CLOUD_PROJECT,
                GEMINI_LOCATION,
                GEMINI_MODEL,
            )
            return model

        except ImportError:
            logger.info("Vertex AI SDK not installed, trying google-generativeai")
        except Exception as e:
            logger.error("Failed to initialize Vertex AI model: %s", e)
            raise GeminiInitializationError(f"Failed to initialize Gemini: {e}") from e

    if not GOOGLE_API_KEY:
        raise GeminiInitializationError(
            "Neither GOOGLE_CLOUD_PROJECT nor GOOGLE_API_KEY is configured"
        )

    try:
        import google.generativeai as genai

        genai.configure(api_key=GOOGLE_API_KEY)
        model = genai.GenerativeModel(GEMINI_MODEL)

        logger.info("Initialized Gemini model (google-generativeai): model=%s", GEMINI_MODEL)
        return model

    except ImportError as e:
        raise GeminiInitializationError(
            "No Gemini SDK available. Install google-cloud-aiplatform or google-generativeai."
        ) from e
    except Exception as e:
        logger.error("Failed to initialize Gemini model: %s", e)
        raise GeminiInitializationError(f"Failed to initialize Gemini: {e}") from e
