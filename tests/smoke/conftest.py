"""Smoke test configuration.

Smoke tests hit the real Gemini API and are skipped when GEMINI_API_KEY is
not set. Run them explicitly with::

    GEMINI_API_KEY=... pytest -m smoke tests/smoke/ -v
"""

from __future__ import annotations

import os

import pytest


@pytest.fixture()
def gemini_api_key() -> str:
    key = os.environ.get("GEMINI_API_KEY")
    if not key:
        pytest.skip("GEMINI_API_KEY environment variable not set")
    return key


@pytest.fixture()
def smoke_model() -> str:
    # A fast, cheap model is enough to check the prompts work end to end
    return os.environ.get("GEMINI_MODEL_NAME", "gemini-2.0-flash")
