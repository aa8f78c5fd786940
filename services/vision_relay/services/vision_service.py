"""Vision service answering exercises shown in images using Google Gemini API."""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from io import BytesIO
from typing import Any, List, Sequence

import google.generativeai as genai
from PIL import Image, UnidentifiedImageError

from ..shared.config import Settings, get_settings
from ..shared.constants import IMAGE_DATA_URI_RE
from ..shared.errors import CompletionError, ConfigurationError

logger = logging.getLogger(__name__)


def strip_data_uri(image_data: str) -> str:
    """Remove a leading ``data:image/<type>;base64,`` prefix, if any."""
    return IMAGE_DATA_URI_RE.sub("", image_data, count=1)


def decode_image(image_data: str) -> Image.Image:
    """Turn a base64 image payload (data URI or bare) into a PIL image."""
    payload = strip_data_uri(image_data)
    try:
        image_bytes = base64.b64decode(payload, validate=False)
    except (binascii.Error, ValueError) as exc:
        raise CompletionError(f"Invalid base64 image payload: {exc}") from exc

    if not image_bytes:
        raise CompletionError("Image payload is empty")

    try:
        image = Image.open(BytesIO(image_bytes))
        image.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise CompletionError(f"Unreadable image payload: {exc}") from exc
    return image


def build_parts(images: Sequence[str], prompt: str) -> List[Any]:
    """All images first, in request order, then the prompt text."""
    parts: List[Any] = [decode_image(image_data) for image_data in images]
    parts.append(prompt)
    return parts


def extract_text(response: Any) -> str:
    """Pull the text out of a Gemini response."""
    try:
        if response.text:
            return response.text
    except ValueError:
        # .text raises when the candidate has no simple text part
        pass

    # Fallback: try to get text from candidates
    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        if content and content.parts:
            text_parts = [part.text for part in content.parts if getattr(part, "text", None)]
            if text_parts:
                return "\n".join(text_parts)

    raise CompletionError("Gemini response did not contain text output.")


class GeminiVisionService:
    """Single multimodal completion against a Gemini model."""

    def __init__(self, settings: Settings | None = None, model: Any = None):
        settings = settings or get_settings()
        self.model_name = settings.gemini_model
        self.timeout = settings.gemini_timeout

        if model is None:
            if not settings.gemini_api_key:
                raise ConfigurationError("GEMINI_API_KEY environment variable is not set")
            genai.configure(api_key=settings.gemini_api_key)
            model = genai.GenerativeModel(self.model_name)
        self.model = model

    async def complete(self, images: Sequence[str], prompt: str) -> str:
        if not images:
            raise CompletionError("At least one image must be provided.")

        logger.info(f"Calling {self.model_name} with {len(images)} image(s)...")

        # Image decoding runs in the worker thread too, off the event loop
        def _generate():
            return self.model.generate_content(
                build_parts(images, prompt),
                request_options={"timeout": self.timeout},
            )

        try:
            response = await asyncio.to_thread(_generate)
        except CompletionError:
            raise
        except Exception as exc:
            raise CompletionError(f"Gemini API request failed: {exc}") from exc

        text = extract_text(response)
        logger.info(f'Gemini response: "{text[:100]}..."')
        return text

