"""Event dispatcher: routes each event of a webhook batch to its handler.

Routing, per event:
1. No user id or no reply token -> skipped, nothing is sent
2. Text message -> detect and remember the language, reply with a
   confirmation in that language; a failed detection gets the language
   setup apology
3. Image message -> resolve the language, fetch the image, analyze it,
   reply with the model's text
4. Anything else -> ignored

Every event runs inside its own error boundary. A failing fetch or analysis
turns into the multilingual apology; a failing reply is logged and never
retried because reply tokens are single-use. Nothing raised while handling
one event reaches the other events or the HTTP layer.

Scheduling:
- "sequential" handles events one at a time in arrival order, so replies go
  out in the order the events arrived
- "concurrent" starts every event at once; events from the same user still
  run one after another in arrival order, guarded by a per-user lock
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from config import logger
from errors import PIPELINE_ERRORS
from events import (
    ImageMessageEvent,
    InboundEvent,
    OtherEvent,
    TextMessageEvent,
    is_routable,
)
from line_client import LineClient

from .common import log_error_with_context
from .language import ConfirmationComposer, LanguageRecorder, LanguageResolver
from .vision import VisionAnalyzer


class EventOutcome(str, Enum):
    SKIPPED = "skipped"
    IGNORED = "ignored"
    REPLIED = "replied"
    FALLBACK_SENT = "fallback_sent"
    REPLY_FAILED = "reply_failed"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class DispatchDeps:
    record_language: Callable[[str, str], Awaitable[str]]
    resolve_language: Callable[[str], Awaitable[str]]
    fetch_content: Callable[[str, str | None], Awaitable[bytes]]
    analyze_image: Callable[[str, bytes], Awaitable[str]]
    compose_confirmation: Callable[[str], Awaitable[str]]
    send_reply: Callable[[str, str], Awaitable[Any]]
    log_error: Callable[..., None]


def build_dispatch_deps(
    line_client: LineClient,
    recorder: LanguageRecorder,
    resolver: LanguageResolver,
    analyzer: VisionAnalyzer,
    composer: ConfirmationComposer,
) -> DispatchDeps:
    return DispatchDeps(
        record_language=recorder.record,
        resolve_language=resolver.resolve,
        fetch_content=line_client.get_message_content,
        analyze_image=analyzer.analyze,
        compose_confirmation=composer.compose,
        send_reply=line_client.reply_text,
        log_error=log_error_with_context,
    )


async def _deliver_reply(
    reply_token: str, text: str, user_id: str, deps: DispatchDeps
) -> bool:
    """Send one reply. Failures are logged, not retried."""
    try:
        await deps.send_reply(reply_token, text)
    except Exception as e:
        deps.log_error(
            e, context_info={"operation": "reply_delivery"}, user_id=user_id,
        )
        return False
    return True


async def handle_text_event(event: TextMessageEvent, deps: DispatchDeps) -> EventOutcome:
    """Detect and remember the user's language, then confirm it in that language."""
    try:
        language = await deps.record_language(event.user_id, event.text)
        confirmation = await deps.compose_confirmation(language)
    except Exception as e:
        deps.log_error(
            e,
            context_info={"operation": "language_setup", "message_id": event.message_id},
            user_id=event.user_id,
            text_preview=event.text,
        )
        sent = await _deliver_reply(
            event.reply_token, PIPELINE_ERRORS.LANGUAGE_SETUP_FAILED, event.user_id, deps
        )
        return EventOutcome.FALLBACK_SENT if sent else EventOutcome.REPLY_FAILED

    sent = await _deliver_reply(event.reply_token, confirmation, event.user_id, deps)
    return EventOutcome.REPLIED if sent else EventOutcome.REPLY_FAILED


async def handle_image_event(event: ImageMessageEvent, deps: DispatchDeps) -> EventOutcome:
    """Analyze an image in the user's language and reply with the description."""
    language = None
    try:
        language = await deps.resolve_language(event.user_id)
        image_data = await deps.fetch_content(event.message_id, event.content_url)
        result = await deps.analyze_image(language, image_data)
    except Exception as e:
        deps.log_error(
            e,
            context_info={
                "operation": "image_analysis",
                "message_id": event.message_id,
                "language": language,
            },
            user_id=event.user_id,
        )
        sent = await _deliver_reply(
            event.reply_token, PIPELINE_ERRORS.ANALYSIS_FAILED, event.user_id, deps
        )
        return EventOutcome.FALLBACK_SENT if sent else EventOutcome.REPLY_FAILED

    sent = await _deliver_reply(event.reply_token, result, event.user_id, deps)
    return EventOutcome.REPLIED if sent else EventOutcome.REPLY_FAILED


async def process_event(event: InboundEvent, deps: DispatchDeps) -> EventOutcome:
    """Route one event. Never raises."""
    if not is_routable(event):
        logger.debug(f"Skipping unroutable {event.kind.value} event")
        return EventOutcome.SKIPPED

    try:
        if isinstance(event, TextMessageEvent):
            return await handle_text_event(event, deps)
        if isinstance(event, ImageMessageEvent):
            return await handle_image_event(event, deps)
        if isinstance(event, OtherEvent):
            logger.debug(f"Ignoring {event.event_type} event from user {event.user_id}")
            return EventOutcome.IGNORED
        raise TypeError(f"Unhandled event variant: {type(event).__name__}")
    except Exception as e:
        deps.log_error(
            e, context_info={"operation": "process_event", "kind": event.kind.value},
            user_id=event.user_id,
        )
        return EventOutcome.FAILED


async def dispatch_events(
    events: Sequence[InboundEvent],
    deps: DispatchDeps,
    mode: str = "sequential",
) -> list[EventOutcome]:
    """
    Process a batch of events.

    Args:
        events: Events in arrival order
        deps: Collaborators used by the handlers
        mode: "sequential" or "concurrent"

    Returns:
        One outcome per event, in the same order as ``events``
    """
    if mode == "sequential":
        outcomes = [await process_event(event, deps) for event in events]
    elif mode == "concurrent":
        user_locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

        async def _run(event: InboundEvent) -> EventOutcome:
            if not is_routable(event):
                return await process_event(event, deps)
            async with user_locks[event.user_id]:
                return await process_event(event, deps)

        outcomes = list(await asyncio.gather(*(_run(event) for event in events)))
    else:
        raise ValueError(f"Unknown dispatch mode: {mode!r}")

    if events:
        summary = ", ".join(
            f"{outcome.value}={outcomes.count(outcome)}"
            for outcome in EventOutcome
            if outcome in outcomes
        )
        logger.info(f"Dispatched {len(events)} event(s) ({mode}): {summary}")
    return outcomes
