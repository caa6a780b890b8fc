"""Spoonacular REST client (async, aiohttp).

Two endpoints are used:
- GET /recipes/findByIngredients: ingredient-based search returning summaries
- GET /recipes/{id}/information: full recipe detail, mapped into Recipe

Every request goes through the shared RateLimitedQueue. HTTP 402 (daily
points quota / billing) raises QuotaExceeded so callers can stop using the
provider for the session; anything else raises ProviderUnavailable.
"""

import asyncio
import math
import re
from typing import Any, Optional, Sequence

import aiohttp

from recipe_engine.clients.rate_limiter import RateLimitedQueue
from recipe_engine.engine.scoring import has_dietary_filter
from recipe_engine.models.models import Recipe, RecipeSource, SpoonacularSummary
from recipe_engine.utils.errors import ProviderUnavailable, QuotaExceeded, RecipeEngineError
from recipe_engine.utils.logger import logger

BASE_URL = "https://api.spoonacular.com/recipes"
PROVIDER = "spoonacular"
RECIPE_ID_PREFIX = "spoonacular-"

_HTML_TAG = re.compile(r"<[^>]*>")


def strip_html(text: Optional[str]) -> str:
    """Remove HTML tags from Spoonacular summaries."""
    if not text:
        return ""
    return _HTML_TAG.sub("", text).strip()


def _split_ready_time(ready_in_minutes: Optional[int]) -> tuple[Optional[str], Optional[str]]:
    """Spoonacular only reports total time; show half as prep and half as cook."""
    if ready_in_minutes is None or ready_in_minutes < 0:
        return None, None
    return f"{ready_in_minutes // 2}min", f"{math.ceil(ready_in_minutes / 2)}min"


def _extract_calories(data: dict[str, Any]) -> Optional[float]:
    nutrients = (data.get("nutrition") or {}).get("nutrients") or []
    for nutrient in nutrients:
        if str(nutrient.get("name", "")).lower() == "calories" and nutrient.get("amount") is not None:
            return max(0.0, float(nutrient["amount"]))
    return None


def map_recipe_detail(data: dict[str, Any]) -> Recipe:
    """Map a /information response into the common Recipe shape.

    Args:
        data: Decoded JSON body of the detail endpoint.

    Returns:
        Recipe with source EXTERNAL_SEARCH and id prefixed "spoonacular-".
    """
    prep_time, cook_time = _split_ready_time(data.get("readyInMinutes"))
    instruction_blocks = data.get("analyzedInstructions") or []
    steps = instruction_blocks[0].get("steps", []) if instruction_blocks else []

    return Recipe(
        id=f"{RECIPE_ID_PREFIX}{data['id']}",
        title=data.get("title") or f"Recipe {data['id']}",
        description=strip_html(data.get("summary")),
        image=data.get("image"),
        source_url=data.get("sourceUrl"),
        author=data.get("sourceName"),
        attribution=data.get("creditsText"),
        prep_time=prep_time,
        cook_time=cook_time,
        servings=data.get("servings"),
        calories=_extract_calories(data),
        ingredients=[ing.get("original", "") for ing in data.get("extendedIngredients") or []],
        instructions=[step.get("step", "") for step in steps],
        dietary_tags=data.get("diets") or [],
        source=RecipeSource.EXTERNAL_SEARCH,
    )


class SpoonacularClient:
    """Async client for the Spoonacular recipe API.

    Uses a caller-provided aiohttp session when given, otherwise opens a
    short-lived session per request.
    """

    def __init__(
        self,
        api_key: str,
        rate_limiter: RateLimitedQueue,
        results_per_search: int = 3,
        timeout_seconds: float = 10,
        base_url: str = BASE_URL,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Spoonacular API key.
            rate_limiter: Queue shared by all calls to this provider.
            results_per_search: ``number`` parameter of findByIngredients.
            timeout_seconds: Total timeout per HTTP request.
            base_url: API root, overridable for tests.
            session: Optional shared aiohttp session.

        Raises:
            ValueError: If api_key is empty.
        """
        if not api_key:
            raise ValueError("SPOONACULAR_API_KEY is required")

        self.api_key = api_key
        self.rate_limiter = rate_limiter
        self.results_per_search = results_per_search
        self.timeout_seconds = timeout_seconds
        self.base_url = base_url.rstrip("/")
        self._session = session

    async def find_by_ingredients(
        self, ingredients: Sequence[str], dietary_filter: Optional[str] = None
    ) -> list[SpoonacularSummary]:
        """Search recipes that use the given ingredients.

        Returns an empty list without calling the API when no ingredients are given.
        """
        if not ingredients:
            return []

        params = {
            "ingredients": ",".join(ingredients),
            "number": str(self.results_per_search),
            "ranking": "2",  # minimize missing ingredients
            "ignorePantry": "true",
        }
        if has_dietary_filter(dietary_filter):
            params["diet"] = dietary_filter.strip().lower()

        logger.info(f"Searching Spoonacular with ingredients: {list(ingredients)}")
        payload = await self._get_json("/findByIngredients", params)
        if not isinstance(payload, list):
            raise ProviderUnavailable("Unexpected findByIngredients response shape", provider=PROVIDER)

        summaries = [SpoonacularSummary.model_validate(item) for item in payload if isinstance(item, dict)]
        logger.debug(f"Spoonacular returned {len(summaries)} search result(s)")
        return summaries

    async def get_detail(self, recipe_id: int | str) -> Recipe:
        """Fetch full recipe information (with nutrition) and map it to Recipe."""
        raw_id = str(recipe_id).removeprefix(RECIPE_ID_PREFIX)
        logger.debug(f"Fetching Spoonacular recipe details for ID: {raw_id}")
        payload = await self._get_json(f"/{raw_id}/information", {"includeNutrition": "true"})
        if not isinstance(payload, dict) or "id" not in payload:
            raise ProviderUnavailable(f"Unexpected detail response for recipe {raw_id}", provider=PROVIDER)
        return map_recipe_detail(payload)

    async def _get_json(self, path: str, params: dict[str, str]) -> Any:
        url = f"{self.base_url}{path}"
        query = {**params, "apiKey": self.api_key}

        async def _request():
            if self._session is not None:
                return await self._send(self._session, url, query)
            async with aiohttp.ClientSession() as session:
                return await self._send(session, url, query)

        try:
            return await self.rate_limiter.submit(_request)
        except RecipeEngineError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ProviderUnavailable(f"Spoonacular request failed: {e}", provider=PROVIDER) from e
        except ValueError as e:
            raise ProviderUnavailable(f"Invalid JSON from Spoonacular: {e}", provider=PROVIDER) from e

    async def _send(self, session: aiohttp.ClientSession, url: str, params: dict[str, str]) -> Any:
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        async with session.get(url, params=params, timeout=timeout) as response:
            if response.status == 402:
                logger.warning("Spoonacular quota exceeded (HTTP 402)")
                raise QuotaExceeded("API quota exceeded", provider=PROVIDER)
            if response.status >= 400:
                error_text = await response.text()
                raise ProviderUnavailable(
                    f"API error {response.status}: {error_text[:200]}",
                    provider=PROVIDER,
                    status=response.status,
                )
            return await response.json()
