"""Gemini API recognition backend."""

from __future__ import annotations

from . import RecognitionBackend
from ..errors import ConfigurationError


class GeminiRecognitionBackend(RecognitionBackend):
    """Recognize food and normalize products using Google Gemini."""

    name = "gemini"

    def __init__(self, api_key: str = "", model: str = "gemini-2.5-pro") -> None:
        self._api_key = api_key
        self._model = model

    async def _generate(
        self,
        prompt: str,
        image_bytes: bytes | None = None,
        mime_type: str | None = None,
    ) -> str:
        if not self._api_key:
            raise ConfigurationError(
                "Gemini API key is not configured. "
                "Check the config file or the GEM_KEY environment variable."
            )

        try:
            import google.generativeai as genai
        except ImportError:
            raise ImportError(
                "google-generativeai SDK is required: pip install google-generativeai"
            ) from None

        genai.configure(api_key=self._api_key)
        model = genai.GenerativeModel(self._model)

        parts: list = [prompt]
        if image_bytes is not None:
            parts.append({"mime_type": mime_type or "image/jpeg", "data": image_bytes})

        response = await model.generate_content_async(parts)
        return response.text
