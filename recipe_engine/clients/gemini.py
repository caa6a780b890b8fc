"""Gemini text and vision client with transient-error retries (async).

The google-genai SDK is synchronous, so calls run in a worker thread via
asyncio.to_thread. Transient failures (timeouts, connection resets, 429 and
5xx responses) are retried with exponential backoff; permanent failures such
as an invalid API key fail immediately. Exhausted or permanent failures raise
ProviderUnavailable so the generative tier is skipped, not fatal.
"""

import asyncio
from typing import Any, Optional

from google import genai
from google.genai import types

from recipe_engine.utils.config import Config
from recipe_engine.utils.errors import ProviderUnavailable
from recipe_engine.utils.logger import logger

PROVIDER = "gemini"

TRANSIENT_MARKERS = ("timeout", "timed out", "connection", "429", "500", "502", "503", "unavailable", "retryable")


def is_transient_error(error: Exception) -> bool:
    """Heuristic: does the error message look like a retryable API failure?"""
    if isinstance(error, (asyncio.TimeoutError, ConnectionError)):
        return True
    error_str = str(error).lower()
    return any(marker in error_str for marker in TRANSIENT_MARKERS)


class GeminiClient:
    """Text completion and image description over the Gemini API."""

    def __init__(
        self,
        api_key: str,
        model: str,
        image_model: Optional[str] = None,
        temperature: float = 0.7,
        max_output_tokens: int = 2048,
        max_retries: int = 3,
        retry_delay: float = 1,
        client: Any = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Gemini API key.
            model: Model id for text completion.
            image_model: Model id for image description (defaults to ``model``).
            temperature: Sampling temperature.
            max_output_tokens: Response length cap.
            max_retries: Attempts per call, including the first.
            retry_delay: Initial backoff delay in seconds, doubled per retry.
            client: Pre-built ``genai.Client`` (tests inject a fake).

        Raises:
            ValueError: If api_key is empty.
        """
        if not api_key:
            raise ValueError("GEMINI_API_KEY is required")

        self.model = model
        self.image_model = image_model or model
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._client = client or genai.Client(api_key=api_key)

    async def complete(self, prompt: str) -> str:
        """Send a text prompt and return the raw response text."""
        return await self._generate(self.model, prompt)

    async def describe_image(self, prompt: str, image_bytes: bytes, mime_type: str) -> str:
        """Send a prompt plus an inline image and return the raw response text."""
        contents = [prompt, types.Part.from_bytes(data=image_bytes, mime_type=mime_type)]
        return await self._generate(self.image_model, contents)

    async def _generate(self, model: str, contents: Any) -> str:
        generation_config = types.GenerateContentConfig(
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
        )
        delay_seconds = self.retry_delay

        for attempt in range(1, self.max_retries + 1):
            try:
                response = await asyncio.to_thread(
                    self._client.models.generate_content,
                    model=model,
                    contents=contents,
                    config=generation_config,
                )
                return response.text or ""
            except Exception as e:
                if is_transient_error(e) and attempt < self.max_retries:
                    logger.debug(
                        f"Transient Gemini error, retrying (attempt {attempt + 1}/{self.max_retries}) "
                        f"after {delay_seconds}s: {e}"
                    )
                    await asyncio.sleep(delay_seconds)
                    delay_seconds *= 2
                    continue
                logger.warning(f"Gemini request failed after {attempt} attempt(s): {e}")
                raise ProviderUnavailable(f"Gemini request failed: {e}", provider=PROVIDER) from e

        # max_retries < 1 leaves the loop without an attempt
        raise ProviderUnavailable("Gemini request was not attempted", provider=PROVIDER)


def create_gemini_client(cfg: Config) -> GeminiClient:
    """Build a GeminiClient from configuration."""
    return GeminiClient(
        api_key=cfg.GEMINI_API_KEY,
        model=cfg.GEMINI_MODEL,
        image_model=cfg.IMAGE_DETECTION_MODEL,
        temperature=cfg.TEMPERATURE,
        max_output_tokens=cfg.MAX_OUTPUT_TOKENS,
        max_retries=cfg.MAX_RETRIES,
        retry_delay=cfg.DELAY_BETWEEN_RETRIES,
    )
