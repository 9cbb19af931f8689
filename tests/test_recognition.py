"""Tests for recognition backends (mocked API calls)."""

import json
import sys
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from pento.foodref.config import load_config
from pento.foodref.errors import ConfigurationError, UpstreamUnavailable
from pento.foodref.models import ExtractedProductInfo
from pento.foodref.recognition import create_backend, decode_json_payload
from pento.foodref.recognition.claude import ClaudeRecognitionBackend
from pento.foodref.recognition.gemini import GeminiRecognitionBackend
from pento.foodref.recognition.prompts import IMAGE_PROMPT, barcode_prompt, receipt_prompt

_ITEMS = [
    {
        "name": "Tomato",
        "foodGroup": "FruitsVegetables",
        "notes": "Ripe",
        "typicalShelfLifeDays_Pantry": 5,
        "typicalShelfLifeDays_Fridge": 14,
        "typicalShelfLifeDays_Freezer": 60,
        "unitType": "Count",
    }
]


class TestCreateBackend:
    def test_create_gemini_backend(self):
        config = load_config()
        backend = create_backend(config)
        assert isinstance(backend, GeminiRecognitionBackend)

    def test_create_claude_backend(self):
        config = load_config()
        config.recognition.backend = "claude"
        assert isinstance(create_backend(config), ClaudeRecognitionBackend)

    def test_create_none_backend(self):
        config = load_config()
        config.recognition.backend = "none"
        assert create_backend(config) is None

    def test_create_unknown_backend(self):
        config = load_config()
        config.recognition.backend = "unknown"
        with pytest.raises(ValueError, match="Unknown recognition backend"):
            create_backend(config)


class TestDecodeJsonPayload:
    def test_plain_json(self):
        assert decode_json_payload(json.dumps(_ITEMS)) == _ITEMS

    def test_markdown_fences(self):
        text = "```json\n" + json.dumps(_ITEMS[0]) + "\n```"
        assert decode_json_payload(text) == _ITEMS[0]

    def test_malformed(self):
        with pytest.raises(UpstreamUnavailable, match="malformed JSON"):
            decode_json_payload("Sorry, I can't see any food.")

    def test_empty(self):
        with pytest.raises(UpstreamUnavailable):
            decode_json_payload("")
        with pytest.raises(UpstreamUnavailable):
            decode_json_payload(None)


class TestPrompts:
    def test_image_prompt_rules(self):
        assert "MixedDishes" in IMAGE_PROMPT
        assert "max 5 items" in IMAGE_PROMPT
        assert "CerealGrainsPasta" in IMAGE_PROMPT
        assert "Weight, Count, Volume" in IMAGE_PROMPT

    def test_receipt_prompt_embeds_text(self):
        prompt = receipt_prompt("MILK 2L  1.99")
        assert "MILK 2L  1.99" in prompt
        assert "Maximum 10 items" in prompt

    def test_barcode_prompt_embeds_product(self):
        info = ExtractedProductInfo(name="Nutella", brand="Ferrero")
        prompt = barcode_prompt(info)
        assert '"name": "Nutella"' in prompt
        assert '"brand": "Ferrero"' in prompt


def _mock_anthropic(text):
    mock_response = MagicMock()
    mock_response.content = [MagicMock(text=text)]
    mock_client = AsyncMock()
    mock_client.messages.create = AsyncMock(return_value=mock_response)
    mock_anthropic = MagicMock()
    mock_anthropic.AsyncAnthropic.return_value = mock_client
    return mock_anthropic, mock_client


class TestClaudeRecognitionBackend:
    @pytest.mark.asyncio
    async def test_requires_api_key(self):
        backend = ClaudeRecognitionBackend(api_key="")
        with pytest.raises(ConfigurationError, match="API key"):
            await backend.recognize_from_image(b"img", "image/png")

    @pytest.mark.asyncio
    async def test_recognize_from_image(self):
        mock_anthropic, mock_client = _mock_anthropic(json.dumps(_ITEMS))

        with patch.dict(sys.modules, {"anthropic": mock_anthropic}):
            backend = ClaudeRecognitionBackend(api_key="test-key")
            payload = await backend.recognize_from_image(b"\xff\xd8fake", "image/png")

        assert payload == _ITEMS
        content = mock_client.messages.create.call_args.kwargs["messages"][0]["content"]
        assert content[0]["type"] == "image"
        assert content[0]["source"]["media_type"] == "image/png"
        assert content[1]["type"] == "text"

    @pytest.mark.asyncio
    async def test_receipt_text_sends_no_image(self):
        mock_anthropic, mock_client = _mock_anthropic(json.dumps(_ITEMS))

        with patch.dict(sys.modules, {"anthropic": mock_anthropic}):
            backend = ClaudeRecognitionBackend(api_key="test-key")
            await backend.recognize_from_receipt_text("TOMATOES 1.20")

        content = mock_client.messages.create.call_args.kwargs["messages"][0]["content"]
        assert [c["type"] for c in content] == ["text"]
        assert "TOMATOES 1.20" in content[0]["text"]

    @pytest.mark.asyncio
    async def test_sdk_failure_is_upstream(self):
        mock_anthropic, mock_client = _mock_anthropic("")
        mock_client.messages.create = AsyncMock(side_effect=RuntimeError("overloaded"))

        with patch.dict(sys.modules, {"anthropic": mock_anthropic}):
            backend = ClaudeRecognitionBackend(api_key="test-key")
            with pytest.raises(UpstreamUnavailable, match="overloaded"):
                await backend.recognize_from_image(b"img", "image/jpeg")


class TestGeminiRecognitionBackend:
    @pytest.mark.asyncio
    async def test_requires_api_key(self):
        backend = GeminiRecognitionBackend(api_key="")
        with pytest.raises(ConfigurationError, match="API key"):
            await backend.recognize_from_receipt_text("text")

    @pytest.mark.asyncio
    async def test_normalize_barcode_product(self):
        mock_response = MagicMock()
        mock_response.text = "```json\n" + json.dumps(_ITEMS[0]) + "\n```"
        mock_model = MagicMock()
        mock_model.generate_content_async = AsyncMock(return_value=mock_response)

        mock_genai = MagicMock()
        mock_genai.GenerativeModel.return_value = mock_model
        mock_google = MagicMock()
        mock_google.generativeai = mock_genai

        with patch.dict(
            sys.modules,
            {"google": mock_google, "google.generativeai": mock_genai},
        ):
            backend = GeminiRecognitionBackend(api_key="test-key", model="gemini-test")
            payload = await backend.normalize_barcode_product(
                ExtractedProductInfo(name="Tomato passata")
            )

        assert payload == _ITEMS[0]
        mock_genai.configure.assert_called_once_with(api_key="test-key")
        mock_genai.GenerativeModel.assert_called_once_with("gemini-test")
        parts = mock_model.generate_content_async.call_args.args[0]
        assert len(parts) == 1
        assert "Tomato passata" in parts[0]

    @pytest.mark.asyncio
    async def test_image_part_attached(self):
        mock_response = MagicMock()
        mock_response.text = json.dumps(_ITEMS)
        mock_model = MagicMock()
        mock_model.generate_content_async = AsyncMock(return_value=mock_response)
        mock_genai = MagicMock()
        mock_genai.GenerativeModel.return_value = mock_model
        mock_google = MagicMock()
        mock_google.generativeai = mock_genai

        with patch.dict(
            sys.modules,
            {"google": mock_google, "google.generativeai": mock_genai},
        ):
            backend = GeminiRecognitionBackend(api_key="test-key")
            await backend.recognize_from_image(b"bytes", "image/webp")

        parts = mock_model.generate_content_async.call_args.args[0]
        assert parts[1] == {"mime_type": "image/webp", "data": b"bytes"}
