"""Error types and error messages for the Guidebot relay.

The exception classes mark the failure boundaries of the event pipeline;
the message classes import strings from strings.py for centralized
translation management.
"""

from dataclasses import dataclass
from typing import Final

import strings as S


class BatchParseError(Exception):
    """The webhook body could not be read as a batch of events."""


class LineApiError(Exception):
    """The LINE Messaging API answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str = "", operation: str = ""):
        self.status_code = status_code
        self.body = body
        self.operation = operation
        super().__init__(
            f"LINE API {operation or 'request'} failed with status {status_code}: {body[:200]}"
        )


class ContentTooLargeError(Exception):
    """Message content exceeded the configured size limit."""


class EmptyModelResponseError(Exception):
    """The model returned no usable text."""


class LanguageStoreError(Exception):
    """The language preference store could not complete an operation."""


@dataclass(frozen=True)
class PipelineErrors:
    """Messages sent to users when per-event processing fails."""

    ANALYSIS_FAILED: Final[str] = S.ANALYSIS_FAILED
    LANGUAGE_SETUP_FAILED: Final[str] = S.LANGUAGE_SETUP_FAILED


# Export all error message classes as singletons
PIPELINE_ERRORS = PipelineErrors()
