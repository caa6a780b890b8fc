"""Tier 2: recipes from the Spoonacular search API."""

import asyncio
from typing import Optional, Sequence

from recipe_engine.clients.spoonacular import SpoonacularClient
from recipe_engine.models.models import Recipe, RecipeSource
from recipe_engine.resolvers.base import RecipeResolver
from recipe_engine.utils.errors import ProviderUnavailable, QuotaExceeded
from recipe_engine.utils.logger import logger


class ExternalSearchResolver(RecipeResolver):
    """Search by ingredients, then fetch full details for each hit concurrently.

    Detail requests still pass through the client's rate-limited queue. A
    quota error on any request fails the whole tier; other detail failures
    drop only that recipe unless every detail request failed.
    """

    name = "spoonacular"
    source = RecipeSource.EXTERNAL_SEARCH

    def __init__(self, client: SpoonacularClient) -> None:
        self.client = client

    async def resolve(self, user_ingredients: Sequence[str], dietary_filter: Optional[str] = None) -> list[Recipe]:
        summaries = await self.client.find_by_ingredients(user_ingredients, dietary_filter)
        if not summaries:
            return []

        results = await asyncio.gather(
            *(self.client.get_detail(summary.id) for summary in summaries),
            return_exceptions=True,
        )

        recipes = []
        errors = []
        for summary, result in zip(summaries, results):
            if isinstance(result, QuotaExceeded):
                raise result
            if isinstance(result, Exception):
                logger.warning(f"Failed to fetch Spoonacular recipe {summary.id}: {result}")
                errors.append(result)
                continue
            recipes.append(result)

        if not recipes and errors:
            raise ProviderUnavailable(
                f"All {len(errors)} Spoonacular detail request(s) failed: {errors[0]}",
                provider="spoonacular",
            )
        return recipes
