"""Split resolved candidates into primary recommendations and alternatives.

- Primary: coverage >= 0.2 and passes calorie/dietary requirements
- Alternative: not primary, and either a weak match (coverage < 0.3) that
  passes requirements, or a strong match (coverage >= 0.3) that fails them
- Candidates with coverage in [0.2, 0.3) that fail requirements are dropped

When primary is empty, one alternative is promoted: the first generative
alternative, else the best-ranked one.
"""

from typing import Optional, Sequence

from recipe_engine.engine.scoring import calculate_coverage, meets_requirements
from recipe_engine.models.models import Recipe, RecommendationSet
from recipe_engine.utils.logger import logger

PRIMARY_COVERAGE_THRESHOLD = 0.2
ALTERNATIVE_COVERAGE_THRESHOLD = 0.3


def _dedupe(candidates: Sequence[Recipe]) -> list[Recipe]:
    seen = set()
    unique = []
    for recipe in candidates:
        if recipe.id in seen:
            continue
        seen.add(recipe.id)
        unique.append(recipe)
    return unique


def partition(
    candidates: Sequence[Recipe],
    user_ingredients: Sequence[str],
    dietary_filter: Optional[str] = None,
    calorie_limit: Optional[float] = None,
) -> RecommendationSet:
    """Partition candidates into a RecommendationSet.

    Args:
        candidates: Resolved candidates, best first.
        user_ingredients: Tokens the coverage is computed against.
        dietary_filter: Optional diet; generative recipes are exempt from tag checks.
        calorie_limit: Optional per-serving calorie ceiling.

    Returns:
        RecommendationSet with disjoint primary and alternative lists. Primary
        keeps candidate order; alternatives are ordered by coverage (desc),
        requirement-passing first on ties.
    """
    evaluated = [
        (recipe, calculate_coverage(recipe, user_ingredients), meets_requirements(recipe, dietary_filter, calorie_limit))
        for recipe in _dedupe(candidates)
    ]

    primary = [recipe for recipe, coverage, passes in evaluated if coverage >= PRIMARY_COVERAGE_THRESHOLD and passes]
    primary_ids = {recipe.id for recipe in primary}

    ranked_alternatives = [
        (recipe, coverage, passes)
        for recipe, coverage, passes in evaluated
        if recipe.id not in primary_ids
        and (
            (coverage < ALTERNATIVE_COVERAGE_THRESHOLD and passes)
            or (coverage >= ALTERNATIVE_COVERAGE_THRESHOLD and not passes)
        )
    ]
    ranked_alternatives.sort(key=lambda item: (-item[1], not item[2]))
    alternatives = [recipe for recipe, _, _ in ranked_alternatives]

    if not primary and alternatives:
        promoted_index = next(
            (index for index, recipe in enumerate(alternatives) if recipe.is_generative),
            0,
        )
        promoted = alternatives.pop(promoted_index)
        primary = [promoted]
        logger.debug(f"No primary recommendations, promoted alternative '{promoted.title}' ({promoted.source.value})")

    return RecommendationSet(primary=primary, alternatives=alternatives)
