"""Ingredient coverage scoring and requirement filtering.

Both functions are pure and query-relative; nothing is cached on the recipe.

Matching is a bidirectional, case-insensitive substring test: a recipe line
"2 tbsp olive oil" matches the user token "olive oil", and the user token
"chicken breast" matches the recipe line "chicken".
"""

from typing import Iterable, Optional, Sequence

from recipe_engine.models.models import Recipe

# Recipe-side coverage dominates: a recipe made almost entirely from the user's
# pantry is a stronger signal than the user merely having extras matched.
RECIPE_COVERAGE_WEIGHT = 0.6
USER_COVERAGE_WEIGHT = 0.4

NO_DIETARY_FILTER = "none"


def normalize_ingredients(ingredients: Iterable[str]) -> list[str]:
    """Lowercase and trim ingredient tokens, dropping blanks."""
    return [ing.strip().lower() for ing in ingredients if ing and ing.strip()]


def _matches(recipe_ingredient: str, user_ingredient: str) -> bool:
    return recipe_ingredient in user_ingredient or user_ingredient in recipe_ingredient


def _matched_recipe_ingredients(recipe_ingredients: Sequence[str], user_ingredients: Sequence[str]) -> list[str]:
    return [
        recipe_ing
        for recipe_ing in recipe_ingredients
        if any(_matches(recipe_ing, user_ing) for user_ing in user_ingredients)
    ]


def count_matching_ingredients(recipe: Recipe, user_ingredients: Sequence[str]) -> int:
    """Number of recipe ingredients matched by at least one user ingredient."""
    user = normalize_ingredients(user_ingredients)
    recipe_ings = normalize_ingredients(recipe.ingredients)
    return len(_matched_recipe_ingredients(recipe_ings, user))


def calculate_coverage(recipe: Recipe, user_ingredients: Sequence[str]) -> float:
    """Score how well a recipe's ingredients overlap the user's ingredients.

    Args:
        recipe: Candidate recipe.
        user_ingredients: Free-text ingredient tokens supplied by the user.

    Returns:
        ``0.6 * recipe_coverage + 0.4 * user_coverage`` in [0, 1], where
        recipe_coverage is the share of recipe ingredients the user has and
        user_coverage the share of user ingredients the recipe uses.
        0.0 when either list is empty.
    """
    user = normalize_ingredients(user_ingredients)
    recipe_ings = normalize_ingredients(recipe.ingredients)
    if not user or not recipe_ings:
        return 0.0

    matched_recipe = _matched_recipe_ingredients(recipe_ings, user)
    used_user = [
        user_ing for user_ing in user if any(_matches(recipe_ing, user_ing) for recipe_ing in recipe_ings)
    ]

    recipe_coverage = len(matched_recipe) / len(recipe_ings)
    user_coverage = len(used_user) / len(user)
    return RECIPE_COVERAGE_WEIGHT * recipe_coverage + USER_COVERAGE_WEIGHT * user_coverage


def find_missing_ingredients(recipe: Recipe, user_ingredients: Sequence[str]) -> list[str]:
    """Recipe ingredients (original text, recipe order) the user does not have."""
    if not recipe.ingredients:
        return []
    user = normalize_ingredients(user_ingredients)
    if not user:
        return list(recipe.ingredients)
    return [
        recipe_ing
        for recipe_ing in recipe.ingredients
        if not any(_matches(recipe_ing.strip().lower(), user_ing) for user_ing in user)
    ]


def has_dietary_filter(dietary_filter: Optional[str]) -> bool:
    return bool(dietary_filter and dietary_filter.strip() and dietary_filter.strip().lower() != NO_DIETARY_FILTER)


def tag_matches(tags: Iterable[str], dietary_filter: str) -> bool:
    """True if any tag contains, or is contained by, the filter (case-insensitive)."""
    wanted = dietary_filter.strip().lower()
    for tag in tags:
        tag = tag.strip().lower()
        if tag and (tag in wanted or wanted in tag):
            return True
    return False


def meets_requirements(
    recipe: Recipe,
    dietary_filter: Optional[str] = None,
    calorie_limit: Optional[float] = None,
) -> bool:
    """Check a recipe against the calorie ceiling and dietary filter.

    Unknown calories never fail the calorie check. Generative recipes skip the
    dietary tag check: the constraint was part of the generation prompt and
    generated tag wording is unreliable.
    """
    if calorie_limit is not None and recipe.calories is not None and recipe.calories > calorie_limit:
        return False

    if has_dietary_filter(dietary_filter):
        if recipe.is_generative:
            return True
        return tag_matches(recipe.dietary_tags, dietary_filter)

    return True
