"""Recommendation entry point.

Flow: result cache (read) -> tiered orchestrator -> result cache (write, only
when no tier failed) -> partitioner. Provider failures surface as records on
the returned RecommendationSet, never as exceptions.
"""

from typing import Optional, Sequence

from recipe_engine.clients.catalog import JsonCatalog
from recipe_engine.clients.gemini import create_gemini_client
from recipe_engine.clients.rate_limiter import RateLimitedQueue
from recipe_engine.clients.spoonacular import SpoonacularClient
from recipe_engine.engine.cache import ResultCache
from recipe_engine.engine.orchestrator import TieredRecipeResolver
from recipe_engine.engine.partition import partition
from recipe_engine.models.models import RecommendationSet, RecommendOptions
from recipe_engine.resolvers.external import ExternalSearchResolver
from recipe_engine.resolvers.generative import GenerativeResolver
from recipe_engine.resolvers.local import LocalCatalogResolver
from recipe_engine.utils.config import Config, config
from recipe_engine.utils.logger import logger


class RecipeRecommender:
    """Turns ingredient lists into recommendation sets for one session.

    Owns the session state: result cache, exhausted tiers (via the
    orchestrator) and, when present, the external search rate limiter.
    """

    def __init__(
        self,
        orchestrator: TieredRecipeResolver,
        cache: ResultCache,
        rate_limiter: Optional[RateLimitedQueue] = None,
        default_threshold: float = 0.1,
        default_max_results: int = 10,
    ) -> None:
        self.orchestrator = orchestrator
        self.cache = cache
        self.rate_limiter = rate_limiter
        self.default_threshold = default_threshold
        self.default_max_results = default_max_results

    async def recommend(
        self,
        ingredients: Sequence[str],
        dietary_filter: Optional[str] = None,
        options: Optional[RecommendOptions] = None,
        force_refresh: bool = False,
    ) -> RecommendationSet:
        """Recommend recipes for the given ingredients.

        Args:
            ingredients: Ingredient tokens the user has.
            dietary_filter: Optional diet ("vegetarian", "none", ...).
            options: Threshold, result cap and calorie limit overrides.
            force_refresh: Bypass the cache read (the result is still cached).

        Returns:
            RecommendationSet; empty when nothing matched.

        Raises:
            ValueError: If no non-blank ingredient was given.
        """
        if isinstance(ingredients, str):
            raise ValueError("ingredients must be a list of ingredient names, not a string")
        cleaned = [ing.strip().lower() for ing in ingredients if ing and ing.strip()]
        if not cleaned:
            raise ValueError("At least one ingredient is required")

        options = options or RecommendOptions()
        threshold = self.default_threshold if options.threshold is None else options.threshold
        max_results = self.default_max_results if options.max_results is None else options.max_results

        key = self.cache.make_key(cleaned, dietary_filter)
        log_extra = {"cache_key": self.cache.format_key(key)}

        if not force_refresh:
            cached = self.cache.get(key)
            if cached is not None:
                logger.info(f"Cache hit: {len(cached)} candidate(s)", extra=log_extra)
                result = partition(cached, cleaned, dietary_filter, options.calorie_limit)
                return result.model_copy(update={"from_cache": True})

        resolution = await self.orchestrator.resolve_candidates(
            cleaned, dietary_filter, threshold=threshold, max_results=max_results
        )

        if resolution.complete:
            self.cache.set(key, resolution.candidates)
        else:
            logger.info(
                f"Not caching result: {len(resolution.failures)} tier failure(s)",
                extra=log_extra,
            )

        result = partition(resolution.candidates, cleaned, dietary_filter, options.calorie_limit)
        logger.info(
            f"Recommended {len(result.primary)} primary and {len(result.alternatives)} alternative recipe(s)",
            extra=log_extra,
        )
        return result.model_copy(update={"failures": resolution.failures})

    def reset(self) -> None:
        """Clear session state: cache, exhausted tiers and rate limiter timing."""
        self.cache.reset()
        self.orchestrator.reset()
        if self.rate_limiter is not None:
            self.rate_limiter.reset()


def create_recommender(cfg: Config = config) -> RecipeRecommender:
    """Build a recommender with the tiers enabled in configuration.

    Tier order is fixed: local catalog, Spoonacular, generative fallback.
    """
    resolvers = []
    rate_limiter = None

    if cfg.USE_LOCAL_CATALOG:
        resolvers.append(LocalCatalogResolver(JsonCatalog(cfg.CATALOG_PATH)))

    if cfg.USE_SPOONACULAR:
        rate_limiter = RateLimitedQueue.create(cfg.API_RATE_LIMIT)
        spoonacular = SpoonacularClient(
            api_key=cfg.SPOONACULAR_API_KEY,
            rate_limiter=rate_limiter,
            results_per_search=cfg.SPOONACULAR_RESULTS,
            timeout_seconds=cfg.SPOONACULAR_TIMEOUT_SECONDS,
        )
        resolvers.append(ExternalSearchResolver(spoonacular))

    if cfg.USE_GENERATIVE_FALLBACK:
        resolvers.append(GenerativeResolver(create_gemini_client(cfg)))

    logger.info(f"Recommender tiers: {[resolver.name for resolver in resolvers]}")

    orchestrator = TieredRecipeResolver(
        resolvers,
        threshold_floor=cfg.THRESHOLD_FLOOR,
        max_relaxations=cfg.MAX_THRESHOLD_RELAXATIONS,
    )
    return RecipeRecommender(
        orchestrator=orchestrator,
        cache=ResultCache.create(cfg.RESULT_CACHE_MAX_ENTRIES),
        rate_limiter=rate_limiter,
        default_threshold=cfg.COVERAGE_THRESHOLD,
        default_max_results=cfg.MAX_RESULTS,
    )
