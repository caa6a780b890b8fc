"""Tiered resolution across recipe sources.

Tiers run in order (local catalog, external search, generative by default).
Each tier's candidates are scored against the user's ingredients, filtered by
the coverage threshold, sorted by coverage and appended without duplicates
until ``max_results`` is reached. A failing tier is recorded and skipped; it
never aborts the request. When nothing is found, the threshold is halved and
the tiers are retried a bounded number of times.
"""

from typing import Optional, Sequence

from recipe_engine.engine.scoring import calculate_coverage, count_matching_ingredients
from recipe_engine.models.models import FailureKind, Recipe, Resolution, TierFailure, TierOutcome
from recipe_engine.resolvers.base import RecipeResolver
from recipe_engine.utils.errors import MalformedPayload, QuotaExceeded, RecipeEngineError
from recipe_engine.utils.logger import logger

DEFAULT_THRESHOLD = 0.2
DEFAULT_MAX_RESULTS = 10


class TieredRecipeResolver:
    """Run resolvers in order and aggregate their candidates.

    A tier that raises QuotaExceeded is marked exhausted and skipped on later
    requests until ``reset()``.
    """

    def __init__(
        self,
        resolvers: Sequence[RecipeResolver],
        threshold_floor: float = 0.05,
        max_relaxations: int = 1,
    ) -> None:
        if max_relaxations < 0:
            raise ValueError(f"max_relaxations must be at least 0, got: {max_relaxations}")
        self.resolvers = list(resolvers)
        self.threshold_floor = threshold_floor
        self.max_relaxations = max_relaxations
        self._exhausted: set[str] = set()

    @property
    def exhausted_tiers(self) -> frozenset[str]:
        return frozenset(self._exhausted)

    def reset(self) -> None:
        self._exhausted.clear()

    async def resolve_candidates(
        self,
        user_ingredients: Sequence[str],
        dietary_filter: Optional[str] = None,
        threshold: float = DEFAULT_THRESHOLD,
        max_results: int = DEFAULT_MAX_RESULTS,
    ) -> Resolution:
        """Collect up to max_results candidates with coverage >= threshold.

        Args:
            user_ingredients: Normalized ingredient tokens.
            dietary_filter: Passed through to each resolver.
            threshold: Minimum coverage in [0, 1].
            max_results: Candidate cap.

        Returns:
            Resolution with the candidates, every tier outcome from every pass,
            and the threshold that produced the result.
        """
        current_threshold = threshold
        outcomes: list[TierOutcome] = []

        for relaxation in range(self.max_relaxations + 1):
            candidates, pass_outcomes = await self._resolve_once(
                user_ingredients, dietary_filter, current_threshold, max_results
            )
            outcomes.extend(pass_outcomes)
            if candidates:
                return Resolution(candidates=candidates, outcomes=outcomes, threshold=current_threshold)

            if relaxation >= self.max_relaxations or current_threshold <= self.threshold_floor:
                break
            relaxed = current_threshold / 2
            logger.info(f"No candidates at threshold {current_threshold:.3f}, relaxing to {relaxed:.3f}")
            current_threshold = relaxed

        logger.info(f"No recipe candidates found for ingredients: {list(user_ingredients)}")
        return Resolution(candidates=[], outcomes=outcomes, threshold=current_threshold)

    async def _resolve_once(
        self,
        user_ingredients: Sequence[str],
        dietary_filter: Optional[str],
        threshold: float,
        max_results: int,
    ) -> tuple[list[Recipe], list[TierOutcome]]:
        accumulated: list[Recipe] = []
        seen_ids: set[str] = set()
        outcomes: list[TierOutcome] = []

        for resolver in self.resolvers:
            if len(accumulated) >= max_results:
                break

            if resolver.name in self._exhausted:
                logger.debug(f"Skipping tier {resolver.name}: quota exhausted", extra={"tier": resolver.name})
                outcomes.append(
                    TierOutcome(
                        tier=resolver.name,
                        failure=TierFailure(kind=FailureKind.SKIPPED, message="Quota exhausted earlier in session"),
                    )
                )
                continue

            outcome = await self._run_tier(resolver, user_ingredients, dietary_filter)
            outcomes.append(outcome)
            if not outcome.ok:
                continue

            scored = [
                (calculate_coverage(recipe, user_ingredients), recipe)
                for recipe in outcome.candidates
                if count_matching_ingredients(recipe, user_ingredients) > 0
            ]
            qualifying = [pair for pair in scored if pair[0] >= threshold]
            # sort is stable: equal scores keep resolver order
            qualifying.sort(key=lambda pair: pair[0], reverse=True)

            for _, recipe in qualifying:
                if recipe.id in seen_ids:
                    continue
                seen_ids.add(recipe.id)
                accumulated.append(recipe)

            logger.debug(
                f"Tier {resolver.name}: {len(qualifying)} of {len(outcome.candidates)} candidates "
                f"at threshold {threshold:.3f}",
                extra={"tier": resolver.name},
            )

        return accumulated[:max_results], outcomes

    async def _run_tier(
        self, resolver: RecipeResolver, user_ingredients: Sequence[str], dietary_filter: Optional[str]
    ) -> TierOutcome:
        try:
            candidates = await resolver.resolve(user_ingredients, dietary_filter)
        except RecipeEngineError as e:
            if isinstance(e, QuotaExceeded):
                self._exhausted.add(resolver.name)
            logger.warning(
                f"Tier {resolver.name} failed: {e}",
                extra={"tier": resolver.name, "failure_kind": e.kind.value},
            )
            if isinstance(e, MalformedPayload) and e.raw_text:
                logger.debug(f"Raw generative output: {e.raw_text[:500]}", extra={"tier": resolver.name})
            return TierOutcome(tier=resolver.name, failure=TierFailure(kind=e.kind, message=str(e)))
        except Exception as e:
            logger.warning(
                f"Tier {resolver.name} failed unexpectedly: {e}",
                exc_info=True,
                extra={"tier": resolver.name, "failure_kind": FailureKind.PROVIDER_UNAVAILABLE.value},
            )
            return TierOutcome(
                tier=resolver.name,
                failure=TierFailure(kind=FailureKind.PROVIDER_UNAVAILABLE, message=str(e)),
            )

        logger.info(f"Tier {resolver.name} returned {len(candidates)} candidate(s)", extra={"tier": resolver.name})
        return TierOutcome(tier=resolver.name, candidates=list(candidates))
