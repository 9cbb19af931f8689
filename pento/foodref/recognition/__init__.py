"""Recognition backend base class, response decoding, and factory."""

from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from ..errors import ConfigurationError, UpstreamUnavailable
from .prompts import IMAGE_PROMPT, barcode_prompt, receipt_prompt

if TYPE_CHECKING:
    from ..config import FoodRefConfig
    from ..models import ExtractedProductInfo

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"```(?:json)?\s*")


def decode_json_payload(text: str | None) -> Any:
    """Parse the JSON body of a model response, ignoring markdown fences.

    Raises:
        UpstreamUnavailable: If the response is empty or not JSON.
    """
    cleaned = _FENCE.sub("", (text or "")).strip()
    if not cleaned:
        raise UpstreamUnavailable("Recognition backend returned no content")
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise UpstreamUnavailable(
            f"Recognition backend returned malformed JSON: {e}"
        ) from e


class RecognitionBackend(ABC):
    """Abstract base for generative-AI food recognition.

    Every method returns the decoded JSON payload; schema validation and
    business rules are applied by the normalizer.
    """

    name: str = "backend"

    @abstractmethod
    async def _generate(
        self,
        prompt: str,
        image_bytes: bytes | None = None,
        mime_type: str | None = None,
    ) -> str:
        """Send one prompt (optionally with an image) and return the text reply."""
        ...

    async def _ask(
        self,
        what: str,
        prompt: str,
        image_bytes: bytes | None = None,
        mime_type: str | None = None,
    ) -> Any:
        try:
            text = await self._generate(prompt, image_bytes, mime_type)
        except (ConfigurationError, UpstreamUnavailable):
            raise
        except ImportError as e:
            raise ConfigurationError(str(e)) from e
        except Exception as e:
            logger.error("%s %s failed: %s", self.name, what, e)
            raise UpstreamUnavailable(f"{what} failed: {e}") from e
        return decode_json_payload(text)

    async def recognize_from_image(self, image_bytes: bytes, mime_type: str) -> Any:
        return await self._ask("Food scan", IMAGE_PROMPT, image_bytes, mime_type)

    async def recognize_from_receipt_text(self, text: str) -> Any:
        return await self._ask("Receipt parsing", receipt_prompt(text))

    async def normalize_barcode_product(self, info: ExtractedProductInfo) -> Any:
        return await self._ask("Barcode normalization", barcode_prompt(info))


def create_backend(config: FoodRefConfig) -> RecognitionBackend | None:
    """Create a recognition backend based on configuration.

    Returns None for backend "none"; barcode scans then use keyword rules.
    """
    backend_name = config.recognition.backend

    match backend_name:
        case "gemini":
            from .gemini import GeminiRecognitionBackend

            return GeminiRecognitionBackend(
                api_key=config.recognition.gemini.api_key,
                model=config.recognition.gemini.model,
            )
        case "claude":
            from .claude import ClaudeRecognitionBackend

            return ClaudeRecognitionBackend(
                api_key=config.recognition.claude.api_key,
                model=config.recognition.claude.model,
            )
        case "none":
            return None
        case _:
            raise ValueError(
                f"Unknown recognition backend: {backend_name!r} "
                f"(choose from gemini / claude / none)"
            )
