"""Common interface for the recipe source tiers."""

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from recipe_engine.models.models import Recipe, RecipeSource


class RecipeResolver(ABC):
    """One source tier: turns user ingredients into recipe candidates.

    Implementations raise RecipeEngineError subclasses on failure; the
    orchestrator records those as tier failures. ``name`` identifies the tier
    in outcomes and logs and must be unique within an orchestrator.
    """

    name: str = "resolver"
    source: RecipeSource

    @abstractmethod
    async def resolve(self, user_ingredients: Sequence[str], dietary_filter: Optional[str] = None) -> list[Recipe]:
        """Return candidates for the ingredients, optionally honoring a diet."""
