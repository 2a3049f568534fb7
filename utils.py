"""Utility functions for the Guidebot relay.

This module provides common utility functions used across the application,
including text truncation, language tag normalization, stream draining and
webhook signature checks.
"""

import base64
import hashlib
import hmac
import re
from collections.abc import AsyncIterable

from config import logger
from errors import ContentTooLargeError

# Two or three letter primary subtag, optionally followed by a region/script
_LANGUAGE_TAG_PATTERN = re.compile(r"^([a-z]{2,3})(?:[-_][a-z0-9]+)*$")


def truncate_text(text: str, max_length: int, suffix: str = "...") -> str:
    """
    Truncate text to specified length with suffix.

    Args:
        text: Text to truncate
        max_length: Maximum length including suffix
        suffix: String to append when truncating

    Returns:
        Truncated text with suffix if needed
    """
    if not text or len(text) <= max_length:
        return text

    return text[: max_length - len(suffix)] + suffix


def normalize_language_tag(value: str | None) -> str | None:
    """
    Normalize a language tag to its lowercase primary subtag.

    Accepts values like "ko", " JA ", "'fr'", "en-US" or "zh_TW" and returns
    "ko", "ja", "fr", "en", "zh". Anything that does not look like a language
    tag yields None.

    Args:
        value: Raw tag as returned by a model, a profile or a store

    Returns:
        Normalized tag, or None if the value is empty or unrecognizable
    """
    if not value:
        return None

    cleaned = value.strip().strip("\"'`.").strip().lower()
    match = _LANGUAGE_TAG_PATTERN.match(cleaned)
    if not match:
        return None
    return match.group(1)


async def drain_stream(chunks: AsyncIterable[bytes], max_bytes: int | None = None) -> bytes:
    """
    Read an incremental byte source to the end and return one buffer.

    Chunks are concatenated in arrival order, so the result does not depend
    on how the source split its payload.

    Args:
        chunks: Async iterable of byte chunks
        max_bytes: Optional upper bound on the total size

    Returns:
        The complete content

    Raises:
        ContentTooLargeError: If the content grows beyond max_bytes
    """
    buffer = bytearray()
    async for chunk in chunks:
        if not chunk:
            continue
        buffer.extend(chunk)
        if max_bytes is not None and len(buffer) > max_bytes:
            raise ContentTooLargeError(
                f"Content exceeds {max_bytes} bytes (read {len(buffer)} so far)"
            )
    return bytes(buffer)


def compute_signature(channel_secret: str, body: bytes) -> str:
    """Return the base64 HMAC-SHA256 signature LINE sends for a body."""
    digest = hmac.new(channel_secret.encode("utf-8"), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_signature(channel_secret: str, body: bytes, signature: str | None) -> bool:
    """
    Check an X-Line-Signature header against the raw request body.

    Args:
        channel_secret: The channel secret from the LINE console
        body: Raw request body bytes, exactly as received
        signature: Header value, or None if the header was absent

    Returns:
        True if the signature matches
    """
    if not signature:
        logger.debug("Webhook request without signature header")
        return False
    expected = compute_signature(channel_secret, body)
    return hmac.compare_digest(expected, signature)
