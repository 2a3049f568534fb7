"""Inbound webhook events for the Guidebot relay.

A webhook body is parsed once, at the edge, into a list of immutable
events. Every event is one of three variants:

- ``TextMessageEvent`` -- a text message with its text
- ``ImageMessageEvent`` -- an image message with its content handle
- ``OtherEvent`` -- anything else (follows, stickers, postbacks, ...)

Only a structurally broken body raises ``BatchParseError``; an event of an
unexpected shape becomes an ``OtherEvent`` so it cannot take its siblings
down with it.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from config import logger
from errors import BatchParseError


class EventKind(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class TextMessageEvent:
    user_id: str | None
    reply_token: str | None
    message_id: str
    text: str
    kind: EventKind = EventKind.TEXT


@dataclass(frozen=True, slots=True)
class ImageMessageEvent:
    user_id: str | None
    reply_token: str | None
    message_id: str
    # Set when the image is hosted outside LINE (contentProvider "external")
    content_url: str | None = None
    kind: EventKind = EventKind.IMAGE


@dataclass(frozen=True, slots=True)
class OtherEvent:
    user_id: str | None
    reply_token: str | None
    event_type: str
    kind: EventKind = EventKind.OTHER


InboundEvent = Union[TextMessageEvent, ImageMessageEvent, OtherEvent]


def is_routable(event: InboundEvent) -> bool:
    """An event can be answered only if it names a user and carries a reply token."""
    return bool(event.user_id) and bool(event.reply_token)


def _optional_str(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def parse_event(raw: dict[str, Any]) -> InboundEvent:
    """
    Convert one raw webhook event object into an InboundEvent.

    Args:
        raw: A single entry of the webhook ``events`` array

    Returns:
        The matching event variant
    """
    event_type = raw.get("type")
    source = raw.get("source")
    user_id = _optional_str(source.get("userId")) if isinstance(source, dict) else None
    reply_token = _optional_str(raw.get("replyToken"))
    message = raw.get("message")

    if event_type != "message" or not isinstance(message, dict):
        return OtherEvent(
            user_id=user_id,
            reply_token=reply_token,
            event_type=str(event_type or "unknown"),
        )

    message_type = message.get("type")
    message_id = _optional_str(message.get("id")) or ""

    if message_type == "text" and isinstance(message.get("text"), str):
        return TextMessageEvent(
            user_id=user_id,
            reply_token=reply_token,
            message_id=message_id,
            text=message["text"],
        )

    if message_type == "image" and message_id:
        content_url = None
        provider = message.get("contentProvider")
        if isinstance(provider, dict) and provider.get("type") == "external":
            content_url = _optional_str(provider.get("originalContentUrl"))
        return ImageMessageEvent(
            user_id=user_id,
            reply_token=reply_token,
            message_id=message_id,
            content_url=content_url,
        )

    return OtherEvent(
        user_id=user_id,
        reply_token=reply_token,
        event_type=f"message:{message_type or 'unknown'}",
    )


def parse_events(body: bytes | str | dict[str, Any]) -> list[InboundEvent]:
    """
    Parse a webhook body into its ordered list of events.

    Args:
        body: Raw request body, or an already decoded JSON object

    Returns:
        Events in arrival order

    Raises:
        BatchParseError: If the body is not JSON, has no ``events`` list, or
            contains an entry that is not a JSON object
    """
    if isinstance(body, (bytes, str)):
        try:
            data = json.loads(body)
        except (ValueError, UnicodeDecodeError) as e:
            raise BatchParseError(f"Webhook body is not valid JSON: {e}") from e
    else:
        data = body

    if not isinstance(data, dict):
        raise BatchParseError("Webhook body must be a JSON object")

    raw_events = data.get("events")
    if not isinstance(raw_events, list):
        raise BatchParseError("Webhook body has no 'events' list")

    events: list[InboundEvent] = []
    for index, raw in enumerate(raw_events):
        if not isinstance(raw, dict):
            raise BatchParseError(f"Event at index {index} is not a JSON object")
        events.append(parse_event(raw))

    logger.debug(f"Parsed webhook batch with {len(events)} event(s)")
    return events
