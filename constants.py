"""Constants module for the Guidebot relay.

This module centralizes all magic numbers, limits, and endpoint constants
used throughout the application for better maintainability.
"""

from dataclasses import dataclass
from typing import Final


@dataclass(frozen=True)
class ImageLimits:
    """Image relay limits."""

    MAX_IMAGE_SIZE_MB: Final[int] = 10
    DEFAULT_MIME_TYPE: Final[str] = "image/jpeg"


@dataclass(frozen=True)
class LanguageConstants:
    """Language tag handling constants."""

    DETECTION_FALLBACK: Final[str] = "en"
    MAX_DETECTION_SAMPLE: Final[int] = 1000


@dataclass(frozen=True)
class APITimeouts:
    """API request timeouts in seconds."""

    GEMINI_DEFAULT: Final[int] = 120
    LINE_DEFAULT: Final[float] = 10.0
    LINE_CONTENT_DOWNLOAD: Final[float] = 60.0


@dataclass(frozen=True)
class LineConstants:
    """LINE Messaging API constants."""

    API_BASE_URL: Final[str] = "https://api.line.me"
    DATA_API_BASE_URL: Final[str] = "https://api-data.line.me"
    MAX_TEXT_LENGTH: Final[int] = 5000
    SIGNATURE_HEADER: Final[str] = "X-Line-Signature"


@dataclass(frozen=True)
class StoreConstants:
    """Preference store constants."""

    REDIS_KEY_PREFIX: Final[str] = "guidebot:lang:"


@dataclass(frozen=True)
class ErrorLogConstants:
    """Error logging constants."""

    CONTEXT_ENABLED: Final[bool] = True
    MAX_TEXT_PREVIEW: Final[int] = 200
    INCLUDE_USER_CONTEXT: Final[bool] = True


# Export all constant classes as singletons
IMAGE_LIMITS = ImageLimits()
LANGUAGE_CONSTANTS = LanguageConstants()
API_TIMEOUTS = APITimeouts()
LINE_CONSTANTS = LineConstants()
STORE_CONSTANTS = StoreConstants()
ERROR_LOG_CONSTANTS = ErrorLogConstants()
