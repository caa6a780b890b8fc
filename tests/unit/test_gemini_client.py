"""Unit tests for the Gemini client retry behavior."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from google.genai import types

from recipe_engine.clients.gemini import GeminiClient, create_gemini_client, is_transient_error
from recipe_engine.utils.config import Config
from recipe_engine.utils.errors import ProviderUnavailable


def make_client(side_effect, max_retries=3):
    sdk = MagicMock()
    sdk.models.generate_content = MagicMock(side_effect=side_effect)
    client = GeminiClient(
        api_key="test-key",
        model="text-model",
        image_model="vision-model",
        max_retries=max_retries,
        retry_delay=1,
        client=sdk,
    )
    return client, sdk


def text_response(text):
    response = MagicMock()
    response.text = text
    return response


class TestIsTransientError:
    """Test transient error classification."""

    @pytest.mark.parametrize(
        "message", ["Request timeout", "Connection reset by peer", "429 Too Many Requests", "503 UNAVAILABLE"]
    )
    def test_transient_messages(self, message):
        """Test that network, rate limit and 5xx errors are transient."""
        assert is_transient_error(Exception(message)) is True

    def test_permanent_message(self):
        """Test that an invalid key is not retried."""
        assert is_transient_error(Exception("400 API key not valid")) is False


class TestComplete:
    """Test text completion."""

    @pytest.mark.asyncio
    async def test_returns_text(self):
        """Test a successful first attempt."""
        client, sdk = make_client([text_response('{"title": "Soup"}')])

        assert await client.complete("Make soup") == '{"title": "Soup"}'
        kwargs = sdk.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "text-model"
        assert kwargs["contents"] == "Make soup"
        assert kwargs["config"].temperature == 0.7

    @pytest.mark.asyncio
    async def test_empty_text_becomes_empty_string(self):
        """Test that a response without text yields ""."""
        client, _ = make_client([text_response(None)])

        assert await client.complete("Make soup") == ""

    @pytest.mark.asyncio
    @patch("recipe_engine.clients.gemini.asyncio.sleep", new_callable=AsyncMock)
    async def test_retry_on_transient_failure(self, mock_sleep):
        """Test that transient errors are retried with exponential backoff."""
        client, sdk = make_client([Exception("503 Service Unavailable"), Exception("timeout"), text_response("ok")])

        assert await client.complete("Make soup") == "ok"
        assert sdk.models.generate_content.call_count == 3
        assert [call.args[0] for call in mock_sleep.await_args_list] == [1, 2]

    @pytest.mark.asyncio
    @patch("recipe_engine.clients.gemini.asyncio.sleep", new_callable=AsyncMock)
    async def test_no_retry_on_permanent_failure(self, mock_sleep):
        """Test that permanent errors fail immediately."""
        client, sdk = make_client([Exception("400 API key not valid")])

        with pytest.raises(ProviderUnavailable, match="API key not valid"):
            await client.complete("Make soup")

        assert sdk.models.generate_content.call_count == 1
        mock_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    @patch("recipe_engine.clients.gemini.asyncio.sleep", new_callable=AsyncMock)
    async def test_max_retries_exceeded(self, mock_sleep):
        """Test that exhausted retries raise ProviderUnavailable."""
        client, sdk = make_client([Exception("503")] * 3)

        with pytest.raises(ProviderUnavailable):
            await client.complete("Make soup")

        assert sdk.models.generate_content.call_count == 3
        assert mock_sleep.await_count == 2


class TestDescribeImage:
    """Test image description."""

    @pytest.mark.asyncio
    async def test_sends_image_part_to_vision_model(self):
        """Test that the prompt and inline image go to the image model."""
        client, sdk = make_client([text_response("[]")])

        await client.describe_image("Find ingredients", b"\x89PNG\r\n\x1a\n", "image/png")

        kwargs = sdk.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "vision-model"
        assert kwargs["contents"][0] == "Find ingredients"
        assert isinstance(kwargs["contents"][1], types.Part)


class TestClientConstruction:
    """Test construction and configuration wiring."""

    def test_requires_api_key(self):
        """Test that an empty API key is rejected."""
        with pytest.raises(ValueError, match="GEMINI_API_KEY"):
            GeminiClient(api_key="", model="text-model")

    @patch("recipe_engine.clients.gemini.genai.Client")
    def test_create_from_config(self, mock_client_class, monkeypatch):
        """Test that configuration values reach the client."""
        monkeypatch.setenv("GEMINI_API_KEY", "cfg-key")
        monkeypatch.setenv("GEMINI_MODEL", "cfg-text")
        monkeypatch.setenv("IMAGE_DETECTION_MODEL", "cfg-vision")
        monkeypatch.setenv("MAX_RETRIES", "5")

        client = create_gemini_client(Config())

        mock_client_class.assert_called_once_with(api_key="cfg-key")
        assert client.model == "cfg-text"
        assert client.image_model == "cfg-vision"
        assert client.max_retries == 5
