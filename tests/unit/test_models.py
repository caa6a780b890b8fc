"""Unit tests for Pydantic models validation."""

import pytest
from pydantic import ValidationError

from recipe_engine.models.models import (
    DetectedIngredient,
    FailureKind,
    GeneratedRecipePayload,
    Recipe,
    RecipeSource,
    RecommendationSet,
    RecommendOptions,
    Resolution,
    SpoonacularSummary,
    TierFailure,
    TierOutcome,
)


class TestRecipe:
    """Test Recipe candidate model."""

    def test_valid_recipe_minimal(self):
        """Test recipe with only required fields."""
        recipe = Recipe(id="1", title="Omelette", source=RecipeSource.LOCAL)

        assert recipe.ingredients == []
        assert recipe.instructions == []
        assert recipe.calories is None
        assert recipe.is_generative is False

    def test_recipe_accepts_camel_case_document(self):
        """Test that catalog documents with camelCase keys validate."""
        recipe = Recipe.model_validate(
            {
                "id": 42,
                "title": "Fried Rice",
                "ingredients": ["rice", "egg"],
                "dietaryTags": ["dairy-free"],
                "prepTime": 10,
                "cookTime": "15min",
                "sourceUrl": "https://example.com/fried-rice",
                "source": "local",
            }
        )

        assert recipe.id == "42"
        assert recipe.dietary_tags == ["dairy-free"]
        assert recipe.prep_time == "10"
        assert recipe.cook_time == "15min"
        assert recipe.source_url == "https://example.com/fried-rice"
        assert recipe.source == RecipeSource.LOCAL

    def test_recipe_cleans_blank_list_entries(self):
        """Test that blank and null ingredient lines are dropped."""
        recipe = Recipe(id="1", title="Soup", ingredients=["  onion ", "", None, "carrot"], source="local")

        assert recipe.ingredients == ["onion", "carrot"]

    def test_recipe_is_frozen(self):
        """Test that candidates cannot be mutated after creation."""
        recipe = Recipe(id="1", title="Soup", source=RecipeSource.LOCAL)

        with pytest.raises(ValidationError):
            recipe.source = RecipeSource.GENERATIVE

    def test_recipe_rejects_negative_calories(self):
        """Test that calories must be non-negative."""
        with pytest.raises(ValidationError) as exc:
            Recipe(id="1", title="Soup", calories=-10, source=RecipeSource.LOCAL)
        assert "calories" in str(exc.value)

    def test_recipe_requires_title(self):
        """Test that an empty title is rejected."""
        with pytest.raises(ValidationError):
            Recipe(id="1", title="   ", source=RecipeSource.LOCAL)

    def test_generative_source_flag(self):
        """Test that is_generative is keyed off source."""
        recipe = Recipe(id="anything", title="AI Dish", source=RecipeSource.GENERATIVE)

        assert recipe.is_generative is True


class TestGeneratedRecipePayload:
    """Test validation of generative model payloads."""

    def test_valid_payload(self):
        """Test a complete camelCase payload."""
        payload = GeneratedRecipePayload.model_validate(
            {
                "title": "Tomato Egg Stir-Fry",
                "description": "Classic home dish",
                "ingredients": ["2 tomatoes", "3 eggs"],
                "instructions": ["Scramble eggs", "Add tomatoes"],
                "prepTime": "5min",
                "cookTime": 10,
                "servings": "2 servings",
                "calories": "250 kcal",
                "dietaryTags": ["vegetarian"],
            }
        )

        assert payload.cook_time == "10"
        assert payload.servings == 2
        assert payload.calories == 250.0
        assert payload.dietary_tags == ["vegetarian"]

    def test_payload_requires_ingredients(self):
        """Test that a recipe with no ingredients is rejected."""
        with pytest.raises(ValidationError):
            GeneratedRecipePayload.model_validate({"title": "Nothing", "ingredients": []})

    def test_payload_requires_title(self):
        """Test that a missing title is rejected."""
        with pytest.raises(ValidationError):
            GeneratedRecipePayload.model_validate({"ingredients": ["egg"]})

    def test_unparseable_servings_become_unknown(self):
        """Test that servings without a number are treated as unknown."""
        payload = GeneratedRecipePayload.model_validate({"title": "X", "ingredients": ["egg"], "servings": "a few"})

        assert payload.servings is None


class TestSpoonacularSummary:
    """Test search result parsing."""

    def test_summary_ignores_unknown_fields(self):
        """Test that extra API fields are ignored."""
        summary = SpoonacularSummary.model_validate(
            {"id": 716429, "title": "Pasta", "usedIngredientCount": 3, "missedIngredientCount": 1, "unknown": 1}
        )

        assert summary.id == 716429
        assert summary.used_ingredient_count == 3
        assert summary.missed_ingredient_count == 1


class TestResolutionModels:
    """Test tier outcome and resolution helpers."""

    def test_outcome_ok_without_failure(self):
        """Test that an outcome without failure is ok."""
        assert TierOutcome(tier="local_catalog").ok is True

    def test_resolution_collects_failures(self):
        """Test that failures are gathered from outcomes and block completeness."""
        failure = TierFailure(kind=FailureKind.QUOTA_EXCEEDED, message="402")
        resolution = Resolution(
            outcomes=[TierOutcome(tier="local_catalog"), TierOutcome(tier="spoonacular", failure=failure)],
            threshold=0.1,
        )

        assert resolution.failures == [failure]
        assert resolution.complete is False

    def test_skipped_tiers_do_not_block_completeness(self):
        """Test that only SKIPPED records still count as a complete resolution."""
        skipped = TierFailure(kind=FailureKind.SKIPPED, message="Quota exhausted earlier in session")
        resolution = Resolution(
            outcomes=[TierOutcome(tier="local_catalog"), TierOutcome(tier="spoonacular", failure=skipped)],
            threshold=0.1,
        )

        assert resolution.failures == [skipped]
        assert resolution.complete is True

    def test_recommendation_set_flags(self):
        """Test empty and quota flags of the result set."""
        result = RecommendationSet(failures=[TierFailure(kind=FailureKind.QUOTA_EXCEEDED)])

        assert result.is_empty is True
        assert result.quota_exceeded is True
        assert result.from_cache is False


class TestRecommendOptions:
    """Test request option bounds."""

    def test_defaults_are_unset(self):
        """Test that unset options fall back to configuration later."""
        options = RecommendOptions()

        assert options.threshold is None
        assert options.max_results is None
        assert options.calorie_limit is None

    def test_threshold_out_of_range(self):
        """Test that threshold must be within [0, 1]."""
        with pytest.raises(ValidationError):
            RecommendOptions(threshold=1.5)

    def test_max_results_must_be_positive(self):
        """Test that max_results must be at least 1."""
        with pytest.raises(ValidationError):
            RecommendOptions(max_results=0)


class TestDetectedIngredient:
    """Test ingredient detection items."""

    def test_name_is_normalized(self):
        """Test that names are trimmed and lowercased."""
        item = DetectedIngredient(name="  Tomato ", quantity=3, unit="pieces", confidence=0.9)

        assert item.name == "tomato"
        assert item.quantity == "3"

    def test_confidence_out_of_range(self):
        """Test that confidence must be within [0, 1]."""
        with pytest.raises(ValidationError):
            DetectedIngredient(name="tomato", confidence=1.5)
