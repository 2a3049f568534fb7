"""Shared test configuration and helpers."""

from __future__ import annotations

import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock


# ---------------------------------------------------------------------------
# Ensure project root is on sys.path
# ---------------------------------------------------------------------------

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))


# Smallest JPEG header; the pipeline never decodes images, it only relays bytes.
TINY_JPEG = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00\xff\xd9"


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------

def make_dispatch_deps(**overrides):
    """Build a DispatchDeps with all-passing defaults. Override any field by name."""
    from handlers.dispatcher import DispatchDeps

    defaults = dict(
        record_language=AsyncMock(return_value="ja"),
        resolve_language=AsyncMock(return_value="ja"),
        fetch_content=AsyncMock(return_value=TINY_JPEG),
        analyze_image=AsyncMock(return_value="Tokyo Tower is a lattice tower in Minato."),
        compose_confirmation=AsyncMock(return_value="Language has been set."),
        send_reply=AsyncMock(return_value=None),
        log_error=MagicMock(),
    )
    defaults.update(overrides)
    return DispatchDeps(**defaults)
