"""Image analysis with a Gemini vision model."""

from __future__ import annotations

from google.genai import types

from config import logger, PROMPTS
from constants import IMAGE_LIMITS
from errors import EmptyModelResponseError

from .common import generate_text


class VisionAnalyzer:
    """Describes an image as a tour guide would, in the requested language.

    The prompt template has a single ``{language}`` placeholder. Errors from
    the model call propagate to the caller; nothing is retried here.
    """

    def __init__(self, model_name: str, prompt_template: str | None = None) -> None:
        self._model_name = model_name
        self._prompt_template = prompt_template or PROMPTS["vision"]["landmark_guide"]

    def build_prompt(self, language: str) -> str:
        return self._prompt_template.format(language=language)

    async def analyze(
        self,
        language: str,
        image_data: bytes,
        mime_type: str = IMAGE_LIMITS.DEFAULT_MIME_TYPE,
    ) -> str:
        # The SDK base64-encodes inline bytes on the wire
        image_part = types.Part.from_bytes(data=image_data, mime_type=mime_type)
        contents = [self.build_prompt(language), image_part]

        text = (await generate_text(self._model_name, contents)).strip()
        if not text:
            raise EmptyModelResponseError(
                f"Model {self._model_name} returned no text for a {len(image_data)} byte image"
            )

        logger.info(f"Image analyzed in {language!r}: {len(text)} chars")
        return text
