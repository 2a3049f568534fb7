"""Language detection and preference resolution.

Text messages go through ``LanguageRecorder``: the text is always detected
and the tag remembered for the user. Detection errors propagate so the
caller can tell the user that nothing was set.

Image messages go through ``LanguageResolver``: a chain of policies tried
in configured order. Each policy may answer with a tag or ``None``; the
first tag wins and the resolver's default closes the chain, so
``LanguageResolver.resolve`` always returns a non-empty tag and never raises.

Policies:
- ``DetectedLanguagePolicy`` -- the tag remembered from the user's last text
- ``ProfileLanguagePolicy`` -- the language from the user's LINE profile
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from config import logger, PROMPTS
from constants import LANGUAGE_CONSTANTS
from language_store import LanguageStore
from line_client import LineClient
import strings as S
from utils import normalize_language_tag

from .common import generate_text, log_error_with_context


class LanguagePolicy(Protocol):
    name: str

    async def lookup(self, user_id: str) -> str | None: ...


class LanguageDetector:
    """Asks a small Gemini model for the ISO 639-1 code of a text sample."""

    def __init__(self, model_name: str, prompt_template: str | None = None) -> None:
        self._model_name = model_name
        self._prompt_template = prompt_template or PROMPTS["language"]["detection"]

    async def detect(self, text: str) -> str:
        sample = text[: LANGUAGE_CONSTANTS.MAX_DETECTION_SAMPLE]
        prompt = self._prompt_template.format(text=sample)
        answer = await generate_text(self._model_name, prompt)
        tag = normalize_language_tag(answer)
        if tag is None:
            logger.info(
                f"Unrecognized detection answer {answer[:20]!r}, using "
                f"{LANGUAGE_CONSTANTS.DETECTION_FALLBACK!r}"
            )
            return LANGUAGE_CONSTANTS.DETECTION_FALLBACK
        return tag


class LanguageRecorder:
    """Detects the language of a user's text and remembers it."""

    def __init__(self, store: LanguageStore, detector: LanguageDetector) -> None:
        self._store = store
        self._detector = detector

    async def record(self, user_id: str, text: str) -> str:
        """
        Detect and store the language of ``text`` for ``user_id``.

        Raises:
            ValueError: If the text is blank
            Exception: Whatever the detector raises
        """
        if not text or not text.strip():
            raise ValueError("Cannot detect the language of blank text")

        tag = await self._detector.detect(text)
        try:
            await self._store.set(user_id, tag)
        except Exception as e:
            # The detected tag is still valid for this event
            log_error_with_context(
                e, context_info={"operation": "store_language", "language": tag},
                user_id=user_id,
            )
        logger.info(f"Detected language {tag!r} for user {user_id}")
        return tag


class DetectedLanguagePolicy:
    name = "detected"

    def __init__(self, store: LanguageStore) -> None:
        self._store = store

    async def lookup(self, user_id: str) -> str | None:
        return normalize_language_tag(await self._store.get(user_id))


class ProfileLanguagePolicy:
    name = "profile"

    def __init__(self, line_client: LineClient) -> None:
        self._line_client = line_client

    async def lookup(self, user_id: str) -> str | None:
        try:
            language = await self._line_client.get_profile_language(user_id)
        except Exception as e:
            logger.warning(
                f"Profile lookup failed for user {user_id} ({type(e).__name__}): {e}"
            )
            return None
        return normalize_language_tag(language)


class LanguageResolver:
    """Total function from a user id to a language tag."""

    def __init__(self, policies: Sequence[LanguagePolicy], default_language: str) -> None:
        default = normalize_language_tag(default_language)
        if default is None:
            raise ValueError(f"Invalid default language: {default_language!r}")
        self._policies = list(policies)
        self.default_language = default

    @property
    def policy_names(self) -> list[str]:
        return [policy.name for policy in self._policies]

    async def resolve(self, user_id: str) -> str:
        for policy in self._policies:
            try:
                tag = await policy.lookup(user_id)
            except Exception as e:
                log_error_with_context(
                    e,
                    context_info={"operation": "resolve_language", "policy": policy.name},
                    user_id=user_id,
                )
                continue
            tag = normalize_language_tag(tag)
            if tag:
                logger.debug(f"Language {tag!r} for user {user_id} from {policy.name}")
                return tag

        logger.debug(f"Using default language {self.default_language!r} for user {user_id}")
        return self.default_language


def build_policies(
    names: Sequence[str],
    store: LanguageStore,
    line_client: LineClient,
) -> list[LanguagePolicy]:
    """Instantiate policies by configured name, keeping their order."""
    policies: list[LanguagePolicy] = []
    for name in names:
        if name == "detected":
            policies.append(DetectedLanguagePolicy(store))
        elif name == "profile":
            policies.append(ProfileLanguagePolicy(line_client))
        else:
            raise ValueError(f"Unknown language policy: {name!r}")
    return policies


class ConfirmationComposer:
    """Builds the 'language has been set' reply in the user's language."""

    def __init__(self, model_name: str, prompt_template: str | None = None) -> None:
        self._model_name = model_name
        self._prompt_template = prompt_template or PROMPTS["language"]["confirmation"]

    async def compose(self, language: str) -> str:
        known = S.LANGUAGE_SET_CONFIRMATIONS.get(language)
        if known:
            return known

        prompt = self._prompt_template.format(
            language=language, sentence=S.LANGUAGE_SET_CONFIRMATION
        )
        try:
            translated = (await generate_text(self._model_name, prompt)).strip()
        except Exception as e:
            log_error_with_context(
                e, context_info={"operation": "translate_confirmation", "language": language}
            )
            return S.LANGUAGE_SET_CONFIRMATION
        return translated or S.LANGUAGE_SET_CONFIRMATION
