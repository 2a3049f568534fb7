"""Common utilities and helpers for the event handlers."""

from __future__ import annotations

import asyncio
import threading

from google import genai
from google.genai import types

from config import (
    logger,
    GEMINI_API_KEY,
)
from constants import API_TIMEOUTS, ERROR_LOG_CONSTANTS


# Gemini client - lazy initialization to avoid crash if API key not set at import time
_gemini_client = None
_gemini_client_lock = threading.Lock()


def get_gemini_client() -> genai.Client:
    """Get or create the Gemini client (lazy initialization)."""
    global _gemini_client
    if _gemini_client is None:
        with _gemini_client_lock:
            if _gemini_client is None:
                _gemini_client = genai.Client(api_key=GEMINI_API_KEY)
    return _gemini_client


def extract_gemini_response_text(response) -> str:
    """
    Extract text from a Gemini API response, handling thinking models properly.

    Thinking models return parts with a 'thought' attribute that should be skipped
    to only return the actual response content.

    Args:
        response: The Gemini API response object

    Returns:
        Extracted text content from the response, or empty string if none found
    """
    response_text = ""

    if (
        response.candidates
        and response.candidates[0].content
        and response.candidates[0].content.parts
    ):
        text_parts = []
        for part in response.candidates[0].content.parts:
            # Skip thought parts from thinking models
            if getattr(part, "thought", False):
                continue
            if getattr(part, "text", None):
                text_parts.append(part.text)
        response_text = "\n".join(text_parts)

    # Fallback to response.text if no parts found
    if not response_text:
        try:
            response_text = response.text or ""
        except (ValueError, AttributeError):
            response_text = ""

    return response_text


async def generate_text(
    model: str,
    contents: list[str | types.Part] | str,
    timeout: float = API_TIMEOUTS.GEMINI_DEFAULT,
) -> str:
    """
    Run one Gemini generate_content call and return its text.

    No retries: errors and timeouts propagate to the caller.
    """
    response = await asyncio.wait_for(
        get_gemini_client().aio.models.generate_content(
            model=model,
            contents=contents,
        ),
        timeout=timeout,
    )
    text = extract_gemini_response_text(response)
    if response.usage_metadata:
        logger.debug(
            f"Gemini {model}: {len(text)} chars, "
            f"tokens={response.usage_metadata.total_token_count or 0}"
        )
    return text


def log_error_with_context(
    error: Exception,
    context_info: dict | None = None,
    user_id: str | None = None,
    text_preview: str | None = None,
):
    """Enhanced error logging with contextual information."""
    if not ERROR_LOG_CONSTANTS.CONTEXT_ENABLED:
        logger.error(f"Error: {error}")
        return

    error_details = {
        "error_type": type(error).__name__,
        "error_message": str(error),
    }

    if ERROR_LOG_CONSTANTS.INCLUDE_USER_CONTEXT and user_id:
        error_details["user_id"] = user_id

    if text_preview:
        preview = text_preview[: ERROR_LOG_CONSTANTS.MAX_TEXT_PREVIEW]
        if len(text_preview) > ERROR_LOG_CONSTANTS.MAX_TEXT_PREVIEW:
            preview += "..."
        error_details["text_preview"] = preview

    if context_info:
        error_details.update(context_info)

    log_parts = [
        f"Enhanced Error Log - {error_details['error_type']}: {error_details['error_message']}"
    ]
    for key, value in error_details.items():
        if key not in ["error_type", "error_message"]:
            log_parts.append(f"  {key}: {value}")
    logger.error("\n".join(log_parts), exc_info=error)
