"""
Event handlers for the Guidebot relay.

This package contains modular handlers split by functionality:
- common: Shared utilities (Gemini client, error logging, helpers)
- language: Language detection, resolution policies and confirmations
- vision: Image analysis with the vision model
- dispatcher: Per-event routing and batch scheduling
"""

from __future__ import annotations

# Re-export common utilities
from .common import (
    get_gemini_client,
    extract_gemini_response_text,
    log_error_with_context,
)

# Re-export language handling
from .language import (
    LanguageDetector,
    LanguageRecorder,
    DetectedLanguagePolicy,
    ProfileLanguagePolicy,
    LanguageResolver,
    ConfirmationComposer,
    build_policies,
)

# Re-export vision analysis
from .vision import VisionAnalyzer

# Re-export dispatching
from .dispatcher import (
    DispatchDeps,
    EventOutcome,
    build_dispatch_deps,
    dispatch_events,
    process_event,
)

__all__ = [
    # Common utilities
    "get_gemini_client",
    "extract_gemini_response_text",
    "log_error_with_context",
    # Language
    "LanguageDetector",
    "LanguageRecorder",
    "DetectedLanguagePolicy",
    "ProfileLanguagePolicy",
    "LanguageResolver",
    "ConfirmationComposer",
    "build_policies",
    # Vision
    "VisionAnalyzer",
    # Dispatching
    "DispatchDeps",
    "EventOutcome",
    "build_dispatch_deps",
    "dispatch_events",
    "process_event",
]
