"""Ingredient detection from food photos using the Gemini vision model.

Pipeline:
- Load image bytes (raw bytes, data: URL or HTTP URL)
- Validate format (JPEG/PNG) and size
- Ask the vision model for a JSON list of ingredients
- Keep ingredients at or above the confidence threshold
"""

import asyncio
import base64
import binascii
from typing import Optional

import aiohttp
import filetype
from pydantic import ValidationError

from recipe_engine.clients.gemini import GeminiClient
from recipe_engine.models.models import DetectedIngredient
from recipe_engine.parsing.structured_text import recover_json
from recipe_engine.prompts.prompts import INGREDIENT_DETECTION_PROMPT
from recipe_engine.utils.config import config
from recipe_engine.utils.errors import RecipeEngineError
from recipe_engine.utils.logger import logger

IMAGE_FETCH_TIMEOUT_SECONDS = 10


def _decode_data_url(data_url: str) -> Optional[bytes]:
    header, _, encoded = data_url.partition(",")
    if ";base64" not in header:
        logger.warning("Unsupported data URL encoding (base64 expected)")
        return None
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        logger.warning(f"Failed to decode base64 image data: {e}")
        return None


async def fetch_image_bytes(image_source: str | bytes) -> Optional[bytes]:
    """Fetch image bytes from a URL, decode a data URL, or pass bytes through.

    Args:
        image_source: Raw bytes, a ``data:image/...;base64,`` URL or an HTTP(S) URL.

    Returns:
        Image bytes if successful, None on failure.
    """
    if isinstance(image_source, bytes):
        return image_source

    if not isinstance(image_source, str):
        return None

    if image_source.startswith("data:"):
        return _decode_data_url(image_source)

    try:
        timeout = aiohttp.ClientTimeout(total=IMAGE_FETCH_TIMEOUT_SECONDS)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(image_source) as response:
                if response.status != 200:
                    logger.warning(f"Failed to fetch image from URL: {image_source}, status: {response.status}")
                    return None
                return await response.read()
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
        logger.warning(f"Failed to fetch image from URL: {image_source}, error: {e}")
        return None


def detect_mime_type(image_bytes: bytes) -> Optional[str]:
    kind = filetype.guess(image_bytes)
    if kind is None or kind.extension not in ("jpg", "jpeg", "png"):
        return None
    return kind.mime


def validate_image_format(image_bytes: bytes) -> bool:
    """Validate image format (JPEG or PNG only)."""
    if detect_mime_type(image_bytes) is None:
        logger.warning(f"Invalid image format: {filetype.guess(image_bytes)}. Only JPEG and PNG supported.")
        return False
    return True


def validate_image_size(image_bytes: bytes) -> bool:
    """Validate image size against MAX_IMAGE_SIZE_MB."""
    size_mb = len(image_bytes) / (1024 * 1024)
    if size_mb > config.MAX_IMAGE_SIZE_MB:
        logger.warning(f"Image size {size_mb:.2f}MB exceeds limit of {config.MAX_IMAGE_SIZE_MB}MB")
        return False
    return True


def parse_detection_response(response_text: str) -> list[DetectedIngredient]:
    """Parse the vision model output into DetectedIngredient items.

    Accepts a JSON array of ingredient objects, an object wrapping it under
    "ingredients", or a list of plain names. Invalid entries are skipped.

    Raises:
        MalformedPayload: If no JSON can be recovered from the text.
    """
    payload = recover_json(response_text)
    if isinstance(payload, dict):
        payload = payload.get("ingredients", [])
    if not isinstance(payload, list):
        logger.warning("Invalid detection response structure: expected a list of ingredients")
        return []

    detected = []
    for entry in payload:
        if isinstance(entry, str):
            entry = {"name": entry}
        if not isinstance(entry, dict):
            continue
        try:
            detected.append(DetectedIngredient.model_validate(entry))
        except ValidationError as e:
            logger.debug(f"Skipping invalid detected ingredient {entry!r}: {e.error_count()} error(s)")
    return detected


def filter_ingredients_by_confidence(
    ingredients: list[DetectedIngredient], min_confidence: Optional[float] = None
) -> list[DetectedIngredient]:
    """Keep ingredients with confidence >= MIN_INGREDIENT_CONFIDENCE.

    Ingredients reported without a confidence are kept.
    """
    threshold = config.MIN_INGREDIENT_CONFIDENCE if min_confidence is None else min_confidence
    filtered = [
        ingredient
        for ingredient in ingredients
        if (1.0 if ingredient.confidence is None else ingredient.confidence) >= threshold
    ]

    if len(filtered) < len(ingredients):
        logger.debug(
            f"Filtered ingredients: {len(ingredients)} → {len(filtered)} (confidence threshold: {threshold})"
        )

    return filtered


async def detect_ingredients(image_source: str | bytes, client: GeminiClient) -> list[str]:
    """Detect ingredient names in a food photo.

    Args:
        image_source: Raw bytes, data URL or HTTP(S) URL of a JPEG/PNG image.
        client: Gemini client used for the vision call.

    Returns:
        Unique ingredient names in detection order.

    Raises:
        ValueError: If the image cannot be loaded, is invalid, or contains no
            confidently detected ingredients.
    """
    image_bytes = await fetch_image_bytes(image_source)
    if not image_bytes:
        raise ValueError("Could not load image data")
    if not validate_image_format(image_bytes):
        raise ValueError("Invalid image format. Only JPEG and PNG are supported.")
    if not validate_image_size(image_bytes):
        raise ValueError(f"Image too large. Maximum size is {config.MAX_IMAGE_SIZE_MB}MB.")

    try:
        response_text = await client.describe_image(
            INGREDIENT_DETECTION_PROMPT, image_bytes, detect_mime_type(image_bytes)
        )
        detected = parse_detection_response(response_text)
    except RecipeEngineError as e:
        logger.warning(f"Ingredient detection failed: {e}")
        raise ValueError(f"Ingredient detection failed: {e}") from e

    confident = filter_ingredients_by_confidence(detected)
    names = list(dict.fromkeys(ingredient.name for ingredient in confident))
    if not names:
        raise ValueError("No ingredients detected in image with sufficient confidence")

    logger.info(f"Detected {len(names)} ingredient(s) in image: {names}")
    return names
