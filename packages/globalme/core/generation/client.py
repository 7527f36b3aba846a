"""Gemini image-generation client with throttling retry.

Async implementation wrapping ``client.aio.models.generate_content`` for
identity-preserving country variants:
- Sends the instruction text plus the source photo inline
- Retries only on provider throttling, with a fixed delay
- Validates the response and returns the first inline image as a data URI
"""

from __future__ import annotations

import asyncio
import base64
import json
import logging
from typing import Any

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from globalme.core.config.models import GenerationConfig
from globalme.core.generation.errors import (
    GenerationError,
    MalformedResponseError,
    SafetyBlockedError,
    ThrottlingError,
    is_throttling_message,
    normalize_error_message,
)
from globalme.core.generation.prompt import build_instruction
from globalme.core.targets.models import TargetConfig

logger = logging.getLogger(__name__)

HARM_CATEGORIES = (
    types.HarmCategory.HARM_CATEGORY_HARASSMENT,
    types.HarmCategory.HARM_CATEGORY_HATE_SPEECH,
    types.HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT,
    types.HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
)

_TEXT_PREVIEW_CHARS = 100


def _error_text(error: Exception) -> str:
    """Raw error text, preferring the provider's own message when available.

    JSON bodies nest it under ``error.message``; non-JSON bodies are wrapped
    by the SDK as a flat ``{"message": ..., "status": ...}``.
    """
    if isinstance(error, genai_errors.APIError) and isinstance(error.details, dict):
        details = error.details
        nested = details.get("error")
        message = nested.get("message") if isinstance(nested, dict) else details.get("message")
        if isinstance(message, str) and message:
            return message
        return json.dumps(details)
    return str(error)


def _is_throttling(error: Exception, message: str) -> bool:
    if isinstance(error, genai_errors.APIError) and error.code == 429:
        return True
    return is_throttling_message(message)


def _encode_png_data_uri(data: bytes | str) -> str:
    if isinstance(data, bytes):
        data = base64.b64encode(data).decode("ascii")
    return f"data:image/png;base64,{data}"


def extract_image(response: Any) -> str:
    """Validate a generate_content response and pull out the image.

    Args:
        response: GenerateContentResponse from the SDK.

    Returns:
        Data-URI encoded PNG of the first inline image part.

    Raises:
        SafetyBlockedError: If the candidate has no content.
        MalformedResponseError: For any other missing piece.
    """
    candidates = response.candidates or []
    if not candidates:
        raise MalformedResponseError("No candidates returned from the API.")

    candidate = candidates[0]
    if candidate.content is None:
        reason = candidate.finish_reason
        reason_text = getattr(reason, "value", reason) if reason is not None else "Unknown"
        raise SafetyBlockedError(str(reason_text))

    parts = candidate.content.parts or []
    if not parts:
        raise MalformedResponseError("No content parts available in the response.")

    for part in parts:
        inline = part.inline_data
        if inline is not None and inline.data:
            return _encode_png_data_uri(inline.data)

    text = next((part.text for part in parts if part.text), None)
    if text:
        raise MalformedResponseError(
            f"Model returned text instead of image: {text[:_TEXT_PREVIEW_CHARS]}..."
        )
    raise MalformedResponseError("No image data found in response.")


class GeminiVariantGenerator:
    """Async client generating one country variant per call.

    Args:
        client: google-genai Client instance.
        model: Image generation model name.
        temperature: Sampling temperature.
        safety_threshold: Block threshold for every harm category.
        max_attempts: Total attempts when the provider throttles.
        retry_delay_s: Fixed delay between throttled attempts.
    """

    def __init__(
        self,
        client: genai.Client,
        *,
        model: str = "gemini-2.5-flash-image",
        temperature: float = 0.3,
        safety_threshold: str = "BLOCK_ONLY_HIGH",
        max_attempts: int = 3,
        retry_delay_s: float = 30.0,
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = temperature
        self._safety_threshold = safety_threshold
        self._max_attempts = max_attempts
        self._retry_delay_s = retry_delay_s

    @classmethod
    def from_config(cls, config: GenerationConfig, api_key: str | None) -> GeminiVariantGenerator:
        return cls(
            create_genai_client(api_key),
            model=config.model,
            temperature=config.temperature,
            safety_threshold=config.safety_threshold,
            max_attempts=config.max_attempts,
            retry_delay_s=config.retry_delay_s,
        )

    @property
    def model(self) -> str:
        return self._model

    def _build_config(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            temperature=self._temperature,
            response_modalities=["TEXT", "IMAGE"],
            safety_settings=[
                types.SafetySetting(category=category, threshold=self._safety_threshold)
                for category in HARM_CATEGORIES
            ],
        )

    async def generate(self, image_bytes: bytes, media_type: str, target: TargetConfig) -> str:
        """Generate a variant of the photo placed in the target's scene.

        Args:
            image_bytes: Encoded source photo.
            media_type: Media type of the photo.
            target: Target to render.

        Returns:
            Data-URI encoded PNG.

        Raises:
            ThrottlingError: If every attempt was throttled.
            GenerationError: On any other provider or response failure.
        """
        contents = [
            types.Part.from_text(text=build_instruction(target)),
            types.Part.from_bytes(data=image_bytes, mime_type=media_type),
        ]
        config = self._build_config()

        for attempt in range(1, self._max_attempts + 1):
            try:
                response = await self._client.aio.models.generate_content(
                    model=self._model,
                    contents=contents,
                    config=config,
                )
            except Exception as e:
                message = normalize_error_message(_error_text(e))
                if not _is_throttling(e, message):
                    raise GenerationError(message) from e
                if attempt >= self._max_attempts:
                    raise ThrottlingError(message, attempts=attempt) from e

                logger.warning(
                    "Throttled generating %s (attempt %d/%d), retrying in %.0fs: %s",
                    target.target_id,
                    attempt,
                    self._max_attempts,
                    self._retry_delay_s,
                    message,
                )
                await asyncio.sleep(self._retry_delay_s)
                continue

            return extract_image(response)

        # Unreachable while max_attempts >= 1
        raise GenerationError(f"No attempts made for {target.target_id}")


def create_genai_client(api_key: str | None) -> genai.Client:
    """Create a google-genai client. Separated for testability."""
    if not api_key:
        raise ValueError("GEMINI_API_KEY is not set")
    return genai.Client(api_key=api_key)
