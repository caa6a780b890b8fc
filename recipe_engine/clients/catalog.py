"""Local recipe catalog readers.

The catalog is a JSON document: either a list of recipe objects or an object
with a "recipes" list. Documents use camelCase keys (prepTime, dietaryTags).
Every recipe loaded from a catalog gets source LOCAL regardless of what the
document says.
"""

import asyncio
import json
from pathlib import Path
from typing import Iterable, Optional, Sequence

from pydantic import ValidationError

from recipe_engine.engine.scoring import count_matching_ingredients, has_dietary_filter, tag_matches
from recipe_engine.models.models import Recipe, RecipeSource
from recipe_engine.utils.errors import ProviderUnavailable
from recipe_engine.utils.logger import logger

PROVIDER = "local_catalog"


class InMemoryCatalog:
    """Catalog backed by an in-process list of recipes."""

    def __init__(self, recipes: Iterable[Recipe] = ()) -> None:
        self._recipes: Optional[list[Recipe]] = [
            recipe.model_copy(update={"source": RecipeSource.LOCAL}) for recipe in recipes
        ]

    async def _ensure_loaded(self) -> list[Recipe]:
        return self._recipes or []

    async def list_all(self) -> list[Recipe]:
        return list(await self._ensure_loaded())

    async def query(self, ingredients: Sequence[str], dietary_filter: Optional[str] = None) -> list[Recipe]:
        """Recipes sharing at least one ingredient with the query.

        When a dietary filter is given, recipes must also carry a matching tag.
        """
        matched = []
        for recipe in await self._ensure_loaded():
            if count_matching_ingredients(recipe, ingredients) == 0:
                continue
            if has_dietary_filter(dietary_filter) and not tag_matches(recipe.dietary_tags, dietary_filter):
                continue
            matched.append(recipe)
        return matched


class JsonCatalog(InMemoryCatalog):
    """Catalog read lazily from a JSON file on first access."""

    def __init__(self, path: str | Path) -> None:
        super().__init__()
        self.path = Path(path)
        self._recipes = None
        self._lock = asyncio.Lock()

    async def _ensure_loaded(self) -> list[Recipe]:
        if self._recipes is not None:
            return self._recipes
        async with self._lock:
            if self._recipes is None:
                self._recipes = await asyncio.to_thread(self._load)
        return self._recipes

    def _load(self) -> list[Recipe]:
        if not self.path.exists():
            raise ProviderUnavailable(f"Recipe catalog not found: {self.path}", provider=PROVIDER)

        try:
            document = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ProviderUnavailable(f"Failed to read recipe catalog {self.path}: {e}", provider=PROVIDER) from e

        entries = document.get("recipes", []) if isinstance(document, dict) else document
        if not isinstance(entries, list):
            raise ProviderUnavailable(f"Recipe catalog {self.path} has no recipe list", provider=PROVIDER)

        recipes = []
        for index, entry in enumerate(entries):
            if not isinstance(entry, dict):
                logger.warning(f"Skipping catalog entry {index}: not an object")
                continue
            try:
                recipes.append(Recipe.model_validate({**entry, "source": RecipeSource.LOCAL}))
            except ValidationError as e:
                logger.warning(f"Skipping catalog entry {index}: {e.error_count()} validation error(s)")

        logger.info(f"Loaded {len(recipes)} recipes from catalog {self.path}")
        return recipes
