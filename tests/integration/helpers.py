"""Helper functions for building LINE webhook payloads.

These builders create plain dicts matching the LINE Messaging API webhook
format so the FastAPI app can be exercised end to end without a running
LINE platform. ``signed_post`` serializes a batch and signs it the way
LINE does, with the test channel secret.
"""

from __future__ import annotations

import json

from constants import LINE_CONSTANTS
from utils import compute_signature

TEST_CHANNEL_SECRET = "test-channel-secret"

# Smallest JPEG header; the relay never decodes images, it only forwards bytes.
TINY_JPEG = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00\xff\xd9"


def _source(user_id: str | None) -> dict:
    source = {"type": "user"}
    if user_id is not None:
        source["userId"] = user_id
    return source


def make_text_event(
    text: str,
    user_id: str | None = "U1",
    reply_token: str | None = "rt-text",
    message_id: str = "m-text",
) -> dict:
    """Build a ``message`` event carrying a text message."""
    event = {
        "type": "message",
        "mode": "active",
        "timestamp": 1700000000000,
        "source": _source(user_id),
        "message": {"type": "text", "id": message_id, "text": text},
    }
    if reply_token is not None:
        event["replyToken"] = reply_token
    return event


def make_image_event(
    message_id: str = "m-image",
    user_id: str | None = "U1",
    reply_token: str | None = "rt-image",
    original_content_url: str | None = None,
) -> dict:
    """Build a ``message`` event carrying an image message.

    When ``original_content_url`` is given the image is marked as hosted by
    an external content provider.
    """
    provider = {"type": "line"}
    if original_content_url is not None:
        provider = {"type": "external", "originalContentUrl": original_content_url}
    event = {
        "type": "message",
        "mode": "active",
        "timestamp": 1700000000000,
        "source": _source(user_id),
        "message": {"type": "image", "id": message_id, "contentProvider": provider},
    }
    if reply_token is not None:
        event["replyToken"] = reply_token
    return event


def make_follow_event(user_id: str = "U1", reply_token: str = "rt-follow") -> dict:
    return {
        "type": "follow",
        "mode": "active",
        "timestamp": 1700000000000,
        "source": _source(user_id),
        "replyToken": reply_token,
    }


def make_sticker_event(user_id: str = "U1", reply_token: str = "rt-sticker") -> dict:
    return {
        "type": "message",
        "mode": "active",
        "timestamp": 1700000000000,
        "source": _source(user_id),
        "replyToken": reply_token,
        "message": {"type": "sticker", "id": "m-sticker", "packageId": "1", "stickerId": "1"},
    }


def make_batch(*events: dict) -> bytes:
    return json.dumps(
        {"destination": "Ubot", "events": list(events)}, ensure_ascii=False
    ).encode("utf-8")


def signed_headers(body: bytes, secret: str = TEST_CHANNEL_SECRET) -> dict[str, str]:
    return {
        "Content-Type": "application/json",
        LINE_CONSTANTS.SIGNATURE_HEADER: compute_signature(secret, body),
    }


async def signed_post(client, body: bytes):
    """POST ``body`` to /webhook with a valid LINE signature."""
    return await client.post("/webhook", content=body, headers=signed_headers(body))
