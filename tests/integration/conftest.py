"""Integration test fixtures for the Guidebot relay.

Provides:
- ``make_gemini_response`` -- helper function (not a fixture) that builds a
  MagicMock resembling a Gemini API response.
- ``patch_gemini`` -- fixture that patches the Gemini client in
  ``handlers.common`` so no real API calls are made.
- ``line_api`` -- a fake LINE Messaging API served through
  ``httpx.MockTransport``; records replies and serves content and profiles.
- ``language_store`` -- a fresh in-memory preference store per test.
- ``client`` -- an ``httpx.AsyncClient`` bound to the FastAPI app with the
  real dispatcher wired to the fakes above.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from tests.integration.helpers import TEST_CHANNEL_SECRET


# ---------------------------------------------------------------------------
# Helper: build a fake Gemini API response
# ---------------------------------------------------------------------------

def make_gemini_response(text: str = "Tokyo Tower", total_tokens: int = 100) -> MagicMock:
    """Build a ``MagicMock`` that resembles a Gemini ``GenerateContentResponse``.

    The mock provides:
    - ``.text`` -- the response text (used by fallback paths).
    - ``.usage_metadata.total_token_count`` -- token accounting.
    - ``.candidates[0].content.parts[0].text`` -- the text accessible via
      the ``extract_gemini_response_text`` helper.
    - ``.candidates[0].content.parts[0].thought`` -- set to ``False`` so the
      part is not skipped by thinking-model filtering.
    """
    response = MagicMock()
    response.text = text
    response.usage_metadata.total_token_count = total_tokens

    part = MagicMock()
    part.text = text
    part.thought = False

    response.candidates = [MagicMock()]
    response.candidates[0].content.parts = [part]
    return response


# ---------------------------------------------------------------------------
# Fixture: patch Gemini client in handlers.common
# ---------------------------------------------------------------------------

@pytest.fixture()
def patch_gemini():
    """Patch the Gemini client so no real API calls are made.

    Yields the mock client so tests can customise its return values, e.g.
    ``patch_gemini.aio.models.generate_content.side_effect = [...]``.
    """
    mock_client = MagicMock()
    mock_client.aio.models.generate_content = AsyncMock(
        return_value=make_gemini_response(),
    )

    with (
        patch("handlers.common._gemini_client", mock_client),
        patch("handlers.common.get_gemini_client", return_value=mock_client),
    ):
        yield mock_client


# ---------------------------------------------------------------------------
# Fake LINE Messaging API
# ---------------------------------------------------------------------------

@dataclass
class FakeLineApi:
    """In-memory stand-in for the LINE endpoints the relay calls."""

    contents: dict[str, bytes] = field(default_factory=dict)
    external: dict[str, bytes] = field(default_factory=dict)
    profiles: dict[str, dict] = field(default_factory=dict)
    failing_content: set[str] = field(default_factory=set)
    rejected_tokens: set[str] = field(default_factory=set)
    replies: list[dict] = field(default_factory=list)
    used_tokens: set[str] = field(default_factory=set)
    requests: list[httpx.Request] = field(default_factory=list)

    def reply_texts(self) -> dict[str, str]:
        """Map of reply token -> text of its (single) message."""
        return {r["replyToken"]: r["messages"][0]["text"] for r in self.replies}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if str(request.url) in self.external:
            return httpx.Response(200, content=self.external[str(request.url)])

        if request.method == "POST" and path == "/v2/bot/message/reply":
            payload = json.loads(request.content)
            token = payload["replyToken"]
            if token in self.rejected_tokens or token in self.used_tokens:
                return httpx.Response(400, json={"message": "Invalid reply token"})
            self.used_tokens.add(token)
            self.replies.append(payload)
            return httpx.Response(200, json={})

        if request.method == "GET" and path.startswith("/v2/bot/message/"):
            message_id = path.split("/")[4]
            if message_id in self.failing_content or message_id not in self.contents:
                return httpx.Response(404, json={"message": "Not found"})
            return httpx.Response(200, content=self.contents[message_id])

        if request.method == "GET" and path.startswith("/v2/bot/profile/"):
            user_id = path.rsplit("/", 1)[-1]
            if user_id not in self.profiles:
                return httpx.Response(404, json={"message": "Not found"})
            return httpx.Response(200, json=self.profiles[user_id])

        return httpx.Response(404, json={"message": "Unknown endpoint"})


@pytest.fixture()
def line_api() -> FakeLineApi:
    return FakeLineApi()


@pytest.fixture()
def language_store():
    from language_store import InMemoryLanguageStore

    return InMemoryLanguageStore()


# ---------------------------------------------------------------------------
# Fixture: async HTTP client wired to the FastAPI app
# ---------------------------------------------------------------------------

@pytest.fixture()
def dispatch_mode() -> str:
    return "sequential"


@pytest.fixture()
def language_policies() -> list[str]:
    return ["detected", "profile"]


@pytest.fixture()
async def client(
    monkeypatch, patch_gemini, line_api, language_store, dispatch_mode, language_policies
):
    """``httpx.AsyncClient`` connected to the webhook app.

    The real dispatcher, resolver, analyzer and LINE client are used; only
    the network edges (Gemini and the LINE API) are fakes.
    """
    import webhook
    from handlers import (
        ConfirmationComposer,
        LanguageDetector,
        LanguageRecorder,
        LanguageResolver,
        VisionAnalyzer,
        build_dispatch_deps,
        build_policies,
    )
    from line_client import LineClient

    line_http = httpx.AsyncClient(transport=httpx.MockTransport(line_api.handler))
    line_client = LineClient("test-token", http_client=line_http)
    resolver = LanguageResolver(
        build_policies(language_policies, language_store, line_client),
        default_language="ja",
    )
    deps = build_dispatch_deps(
        line_client=line_client,
        recorder=LanguageRecorder(language_store, LanguageDetector("detect-model")),
        resolver=resolver,
        analyzer=VisionAnalyzer("vision-model"),
        composer=ConfirmationComposer("vision-model"),
    )

    monkeypatch.setattr(webhook, "LINE_CHANNEL_SECRET", TEST_CHANNEL_SECRET)
    monkeypatch.setattr(webhook, "DISPATCH_MODE", dispatch_mode)
    monkeypatch.setattr(webhook, "get_dispatch_deps", lambda: deps)
    monkeypatch.setattr(webhook, "get_language_store", lambda: language_store)

    transport = httpx.ASGITransport(app=webhook.app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    await line_http.aclose()
