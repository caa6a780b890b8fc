"""Data models and schemas for the recipe recommendation engine.

Defines Pydantic models for recipe candidates, tier outcomes, recommendation
results and the payloads recovered from provider responses.
All models use Pydantic v2; catalog and generated documents use camelCase keys,
so models that read them accept both camelCase aliases and field names.
"""

import re
from enum import Enum
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class RecipeSource(str, Enum):
    """Provenance of a recipe candidate. Set by the resolver that created it."""

    LOCAL = "local"
    EXTERNAL_SEARCH = "external_search"
    GENERATIVE = "generative"


class FailureKind(str, Enum):
    """Why a resolution tier produced no candidates."""

    PROVIDER_UNAVAILABLE = "provider_unavailable"
    QUOTA_EXCEEDED = "quota_exceeded"
    MALFORMED_PAYLOAD = "malformed_payload"
    SKIPPED = "skipped"


def _as_text(value):
    """Coerce numeric document values (ids, minutes) to strings."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def _clean_lines(values) -> list:
    """Drop blank and non-string entries from an ingredient/step/tag list."""
    if values is None:
        return []
    if isinstance(values, str):
        values = [values]
    return [str(v).strip() for v in values if v is not None and str(v).strip()]


class Recipe(BaseModel):
    """A recipe candidate flowing through scoring, filtering and partitioning.

    Candidates are immutable once a resolver has built them. Coverage scores
    are query-relative and therefore never stored here.
    """

    model_config = ConfigDict(
        str_strip_whitespace=True,
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: Annotated[str, Field(min_length=1, description="Identifier, unique within its source")]
    title: Annotated[str, Field(min_length=1, max_length=200, description="Recipe name (1-200 chars)")]
    description: Annotated[str, Field("", description="Plain-text summary")]
    ingredients: Annotated[List[str], Field(default_factory=list, description="Free-text ingredient lines")]
    instructions: Annotated[
        List[str], Field(default_factory=list, description="Ordered steps (may be empty for elided recipes)")
    ]
    dietary_tags: Annotated[List[str], Field(default_factory=list, description="Free-text dietary tags")]
    calories: Annotated[
        Optional[float], Field(None, ge=0, description="Calories per serving; None means unknown, not zero")
    ]
    servings: Annotated[Optional[int], Field(None, ge=0, description="Number of servings")]
    prep_time: Annotated[Optional[str], Field(None, description="Display prep time, e.g. '15min'")]
    cook_time: Annotated[Optional[str], Field(None, description="Display cook time, e.g. '30min'")]
    source: Annotated[RecipeSource, Field(description="Which resolver produced the candidate")]
    source_url: Annotated[Optional[str], Field(None, description="Original recipe URL")]
    author: Annotated[Optional[str], Field(None, description="Author or publishing site")]
    attribution: Annotated[Optional[str], Field(None, description="Credit line required by the provider")]
    image: Annotated[Optional[str], Field(None, description="Image URL")]

    @field_validator("id", "prep_time", "cook_time", mode="before")
    @classmethod
    def coerce_text(cls, value):
        return _as_text(value)

    @field_validator("ingredients", "instructions", "dietary_tags", mode="before")
    @classmethod
    def clean_lists(cls, values):
        return _clean_lines(values)

    @property
    def is_generative(self) -> bool:
        return self.source == RecipeSource.GENERATIVE


class GeneratedRecipePayload(BaseModel):
    """Schema a generative model response must satisfy to become a candidate.

    Lenient on formatting (servings given as "4 servings", minutes as numbers)
    but strict on content: a title and at least one ingredient are required.
    """

    model_config = ConfigDict(str_strip_whitespace=True, alias_generator=to_camel, populate_by_name=True)

    title: Annotated[str, Field(min_length=1, max_length=200)]
    description: str = ""
    ingredients: Annotated[List[str], Field(min_length=1)]
    instructions: List[str] = Field(default_factory=list)
    prep_time: Optional[str] = None
    cook_time: Optional[str] = None
    servings: Optional[int] = None
    dietary_tags: List[str] = Field(default_factory=list)
    calories: Annotated[Optional[float], Field(None, ge=0)]

    @field_validator("prep_time", "cook_time", mode="before")
    @classmethod
    def coerce_text(cls, value):
        return _as_text(value)

    @field_validator("ingredients", "instructions", "dietary_tags", mode="before")
    @classmethod
    def clean_lists(cls, values):
        return _clean_lines(values)

    @field_validator("servings", mode="before")
    @classmethod
    def parse_servings(cls, value):
        """Accept 4, "4" or "4 servings"; anything else becomes unknown."""
        if value is None or isinstance(value, int):
            return value
        match = re.search(r"\d+", str(value))
        return int(match.group()) if match else None

    @field_validator("calories", mode="before")
    @classmethod
    def parse_calories(cls, value):
        if value is None or isinstance(value, (int, float)):
            return value
        match = re.search(r"\d+(?:\.\d+)?", str(value))
        return float(match.group()) if match else None


class SpoonacularSummary(BaseModel):
    """One row of a Spoonacular findByIngredients response."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: int
    title: str = ""
    image: Optional[str] = None
    used_ingredient_count: int = 0
    missed_ingredient_count: int = 0
    likes: int = 0


class TierFailure(BaseModel):
    """Structured failure of one resolution tier."""

    kind: FailureKind
    message: str = ""


class TierOutcome(BaseModel):
    """Result of running one tier: success(candidates) or failure(kind)."""

    tier: str
    candidates: List[Recipe] = Field(default_factory=list)
    failure: Optional[TierFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


class Resolution(BaseModel):
    """Aggregated candidates from the tiered orchestrator."""

    candidates: List[Recipe] = Field(default_factory=list)
    outcomes: List[TierOutcome] = Field(default_factory=list)
    threshold: float

    @property
    def failures(self) -> List[TierFailure]:
        return [outcome.failure for outcome in self.outcomes if outcome.failure is not None]

    @property
    def complete(self) -> bool:
        """True when no attempted tier failed (safe to cache).

        Tiers skipped for an earlier quota error do not count as failures.
        """
        return all(failure.kind == FailureKind.SKIPPED for failure in self.failures)


class RecommendOptions(BaseModel):
    """Optional knobs for a recommendation request. Unset values use configuration."""

    threshold: Annotated[Optional[float], Field(None, ge=0.0, le=1.0, description="Minimum coverage for candidates")]
    max_results: Annotated[Optional[int], Field(None, ge=1, le=100, description="Maximum candidates to collect")]
    calorie_limit: Annotated[Optional[float], Field(None, ge=0, description="Per-serving calorie ceiling")]


class RecommendationSet(BaseModel):
    """Engine output: primary recommendations and alternatives, disjoint by id."""

    primary: List[Recipe] = Field(default_factory=list)
    alternatives: List[Recipe] = Field(default_factory=list)
    failures: Annotated[
        List[TierFailure], Field(default_factory=list, description="Tier failures of the resolution (not cached)")
    ]
    from_cache: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.primary and not self.alternatives

    @property
    def quota_exceeded(self) -> bool:
        return any(failure.kind == FailureKind.QUOTA_EXCEEDED for failure in self.failures)


class DetectedIngredient(BaseModel):
    """An ingredient identified in a food photo."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: Annotated[str, Field(min_length=1, max_length=100)]
    quantity: Optional[str] = None
    unit: Optional[str] = None
    confidence: Annotated[Optional[float], Field(None, ge=0.0, le=1.0)]

    @field_validator("quantity", mode="before")
    @classmethod
    def coerce_quantity(cls, value):
        return _as_text(value)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        return value.lower()
