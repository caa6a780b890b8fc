"""Tier 3: a recipe generated by the language model."""

import uuid
from typing import Callable, Optional, Sequence

from pydantic import ValidationError

from recipe_engine.clients.gemini import GeminiClient
from recipe_engine.models.models import GeneratedRecipePayload, Recipe, RecipeSource
from recipe_engine.parsing.structured_text import recover_json
from recipe_engine.prompts.prompts import build_recipe_prompt
from recipe_engine.resolvers.base import RecipeResolver
from recipe_engine.utils.errors import MalformedPayload
from recipe_engine.utils.logger import logger

GENERATED_ID_PREFIX = "generated-"
GENERATED_ATTRIBUTION = "Generated by AI"


def _new_recipe_id() -> str:
    return f"{GENERATED_ID_PREFIX}{uuid.uuid4().hex[:12]}"


class GenerativeResolver(RecipeResolver):
    """Ask the model for one recipe and validate what comes back.

    Produces at most one candidate per call. Unparseable or schema-invalid
    output raises MalformedPayload.
    """

    name = "generative"
    source = RecipeSource.GENERATIVE

    def __init__(self, client: GeminiClient, id_factory: Callable[[], str] = _new_recipe_id) -> None:
        self.client = client
        self.id_factory = id_factory

    async def resolve(self, user_ingredients: Sequence[str], dietary_filter: Optional[str] = None) -> list[Recipe]:
        prompt = build_recipe_prompt(user_ingredients, dietary_filter)
        raw_text = await self.client.complete(prompt)
        payload = recover_json(raw_text)

        # Some models return a one-element array instead of an object
        if isinstance(payload, list):
            payload = next((item for item in payload if isinstance(item, dict)), None)
        if not isinstance(payload, dict):
            raise MalformedPayload("Generated payload is not a recipe object", raw_text=raw_text)

        try:
            generated = GeneratedRecipePayload.model_validate(payload)
            recipe = Recipe(
                id=self.id_factory(),
                title=generated.title,
                description=generated.description,
                ingredients=generated.ingredients,
                instructions=generated.instructions,
                dietary_tags=generated.dietary_tags,
                calories=generated.calories,
                servings=generated.servings,
                prep_time=generated.prep_time,
                cook_time=generated.cook_time,
                attribution=GENERATED_ATTRIBUTION,
                source=RecipeSource.GENERATIVE,
            )
        except ValidationError as e:
            raise MalformedPayload(
                f"Generated recipe failed validation: {e.error_count()} error(s)", raw_text=raw_text
            ) from e

        logger.info(f"Generated recipe '{recipe.title}' with {len(recipe.ingredients)} ingredients")
        return [recipe]
