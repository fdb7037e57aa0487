"""Gemini call with retry logic.

Transient failures (deadline exceeded, service unavailable, rate limited,
internal error) are converted to TimeoutError / ConnectionError / OSError and
retried with exponential backoff. Anything else propagates immediately; the
classifier backend decides what to fall back to.
"""

from __future__ import annotations

from typing import Any

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from noteq.config import LLM_MAX_RETRIES
from noteq.llm.gemini import json_generation_config
from noteq.observability.logging import get_logger
from noteq.observability.telemetry import counter

logger = get_logger(__name__)


@retry(
    stop=stop_after_attempt(LLM_MAX_RETRIES),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((TimeoutError, ConnectionError, OSError)),
    reraise=True,
)
def call_llm(model: Any, prompt: str, operation: str = "llm") -> str:
    """Send one JSON-mode prompt and return the response text.

    Args:
        model: Gemini model (Vertex AI or google-generativeai)
        prompt: Fully rendered prompt
        operation: Telemetry suffix (e.g. "todos", "labels")

    Raises:
        TimeoutError: On deadline exceeded (retryable)
        ConnectionError: On service unavailable or internal error (retryable)
        OSError: On resource exhausted / rate limited (retryable)
        Exception: On other errors (not retried)
    """
    from google.api_core.exceptions import (
        DeadlineExceeded,
        InternalServerError,
        ResourceExhausted,
        ServiceUnavailable,
    )

    try:
        response = model.generate_content(prompt, generation_config=json_generation_config())
        return response.text
    except DeadlineExceeded as e:
        counter(f"classifier.gemini.{operation}.timeout")
        logger.warning("Gemini call timed out: %s", e)
        raise TimeoutError(f"LLM call timed out: {e}") from e
    except ServiceUnavailable as e:
        counter(f"classifier.gemini.{operation}.service_unavailable")
        logger.warning("Gemini unavailable, will retry: %s", e)
        raise ConnectionError(f"LLM service unavailable: {e}") from e
    except ResourceExhausted as e:
        counter(f"classifier.gemini.{operation}.rate_limited")
        logger.warning("Gemini rate limited (429), will retry: %s", e)
        raise OSError(f"LLM rate limited: {e}") from e
    except InternalServerError as e:
        counter(f"classifier.gemini.{operation}.internal_error")
        logger.warning("Gemini internal error (500), will retry: %s", e)
        raise ConnectionError(f"LLM internal error: {e}") from e
