"""Receipt text extraction with Google Cloud Vision."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from .errors import ConfigurationError, UpstreamUnavailable

logger = logging.getLogger(__name__)


class GoogleVisionOcr:
    """Runs document text detection on receipt images.

    Uses explicit service-account JSON when given, otherwise the default
    application credentials.
    """

    def __init__(self, credentials_json: str = "", client: Any = None) -> None:
        self._credentials_json = credentials_json
        self._client = client

    def _get_client(self) -> Any:
        if self._client is not None:
            return self._client

        try:
            from google.auth.exceptions import DefaultCredentialsError
            from google.cloud import vision
            from google.oauth2 import service_account
        except ImportError:
            raise ImportError(
                "google-cloud-vision is required: pip install google-cloud-vision"
            ) from None

        try:
            if self._credentials_json:
                logger.info("Initializing Google Vision with explicit credentials")
                info = json.loads(self._credentials_json)
                credentials = service_account.Credentials.from_service_account_info(info)
                self._client = vision.ImageAnnotatorClient(credentials=credentials)
            else:
                logger.info(
                    "Initializing Google Vision using default application credentials"
                )
                self._client = vision.ImageAnnotatorClient()
        except (ValueError, DefaultCredentialsError) as e:
            raise ConfigurationError(f"Google Vision credentials are invalid: {e}") from e
        return self._client

    @staticmethod
    def _detect(client: Any, image_bytes: bytes) -> str:
        from google.cloud import vision

        response = client.document_text_detection(image=vision.Image(content=image_bytes))
        if response.error and response.error.message:
            raise RuntimeError(response.error.message)
        annotation = response.full_text_annotation
        return (annotation.text if annotation else "") or ""

    async def extract_text(self, image_bytes: bytes) -> str:
        """Return the receipt text.

        Raises:
            ConfigurationError: If credentials are missing or invalid.
            UpstreamUnavailable: If the call fails or no text is detected.
        """
        client = self._get_client()
        try:
            text = await asyncio.to_thread(self._detect, client, image_bytes)
        except Exception as e:
            raise UpstreamUnavailable(f"Vision OCR failed: {e}") from e

        text = text.strip()
        if not text:
            raise UpstreamUnavailable("No text detected in the provided image")
        return text
