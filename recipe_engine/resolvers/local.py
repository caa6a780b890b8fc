"""Tier 1: recipes from the local catalog."""

import math
from typing import Optional, Sequence

from recipe_engine.clients.catalog import InMemoryCatalog
from recipe_engine.engine.scoring import count_matching_ingredients, has_dietary_filter, tag_matches
from recipe_engine.models.models import Recipe, RecipeSource
from recipe_engine.resolvers.base import RecipeResolver
from recipe_engine.utils.logger import logger

# Catalog tags use several spellings for the same diet
DIETARY_TAG_SYNONYMS = {
    "lactose-free": ("lactose-free", "dairy-free"),
    "dairy-free": ("dairy-free", "lactose-free"),
    "high-protein": ("high-protein", "protein-rich"),
    "protein-rich": ("protein-rich", "high-protein"),
    "keto": ("keto", "ketogenic"),
    "ketogenic": ("ketogenic", "keto"),
}

MIN_MATCH_RATIO = 0.3
MIN_MATCH_COUNT = 2


def minimum_match_count(recipe_ingredient_count: int) -> int:
    """Matches a catalog recipe needs before it is worth scoring."""
    return max(MIN_MATCH_COUNT, math.ceil(MIN_MATCH_RATIO * recipe_ingredient_count))


def dietary_match(recipe: Recipe, dietary_filter: str) -> bool:
    wanted = dietary_filter.strip().lower()
    return any(tag_matches(recipe.dietary_tags, variant) for variant in DIETARY_TAG_SYNONYMS.get(wanted, (wanted,)))


class LocalCatalogResolver(RecipeResolver):
    """Query the catalog and keep recipes with enough ingredient matches.

    Results are ordered by match count, highest first.
    """

    name = "local_catalog"
    source = RecipeSource.LOCAL

    def __init__(self, catalog: InMemoryCatalog) -> None:
        self.catalog = catalog

    async def resolve(self, user_ingredients: Sequence[str], dietary_filter: Optional[str] = None) -> list[Recipe]:
        candidates = await self.catalog.query(user_ingredients)

        matched = []
        for recipe in candidates:
            match_count = count_matching_ingredients(recipe, user_ingredients)
            if match_count < minimum_match_count(len(recipe.ingredients)):
                continue
            if has_dietary_filter(dietary_filter) and not dietary_match(recipe, dietary_filter):
                continue
            matched.append((match_count, recipe))

        matched.sort(key=lambda pair: pair[0], reverse=True)
        logger.debug(f"Local catalog matched {len(matched)} of {len(candidates)} queried recipes")
        return [recipe for _, recipe in matched]
