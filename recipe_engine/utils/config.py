"""Configuration management for the Recipe Recommendation Engine.

Loads environment variables from system environment and .env file.
Priority order: system environment > .env file > hardcoded defaults
"""

import os

from dotenv import load_dotenv


# Load .env file (if exists, silently continues if missing)
load_dotenv()


class Config:
    """Engine configuration loaded from environment variables."""

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        # Gemini: text model for the generative fallback tier
        self.GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
        self.GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
        # Vision model used by image ingredient detection
        self.IMAGE_DETECTION_MODEL: str = os.getenv("IMAGE_DETECTION_MODEL", "gemini-2.5-flash-lite")

        # Tier 1: local catalog (JSON document store)
        self.USE_LOCAL_CATALOG: bool = os.getenv("USE_LOCAL_CATALOG", "true").lower() in ("true", "1", "yes")
        self.CATALOG_PATH: str = os.getenv("CATALOG_PATH", "data/recipes.json")

        # Tier 2: Spoonacular external search
        self.USE_SPOONACULAR: bool = os.getenv("USE_SPOONACULAR", "true").lower() in ("true", "1", "yes")
        # Spoonacular API Key: required if USE_SPOONACULAR is true
        self.SPOONACULAR_API_KEY: str = os.getenv("SPOONACULAR_API_KEY", "")
        # Results per ingredient search. Each result costs one detail request, keep it small
        self.SPOONACULAR_RESULTS: int = int(os.getenv("SPOONACULAR_RESULTS", "3"))
        self.SPOONACULAR_TIMEOUT_SECONDS: int = int(os.getenv("SPOONACULAR_TIMEOUT_SECONDS", "10"))
        # Requests per minute ceiling for the outbound Spoonacular queue
        self.API_RATE_LIMIT: int = int(os.getenv("API_RATE_LIMIT", "50"))

        # Tier 3: generative fallback
        self.USE_GENERATIVE_FALLBACK: bool = (
            os.getenv("USE_GENERATIVE_FALLBACK", "true").lower() in ("true", "1", "yes")
        )

        # Tiered resolution defaults
        # Minimum coverage a candidate needs to enter the aggregated list. Default: 0.1
        self.COVERAGE_THRESHOLD: float = float(os.getenv("COVERAGE_THRESHOLD", "0.1"))
        # Maximum number of candidates collected across tiers. Default: 10
        self.MAX_RESULTS: int = int(os.getenv("MAX_RESULTS", "10"))
        # Threshold relaxation: halve the threshold while it stays above the floor
        self.THRESHOLD_FLOOR: float = float(os.getenv("THRESHOLD_FLOOR", "0.05"))
        self.MAX_THRESHOLD_RELAXATIONS: int = int(os.getenv("MAX_THRESHOLD_RELAXATIONS", "1"))

        # Session result cache bound (0 = unbounded)
        self.RESULT_CACHE_MAX_ENTRIES: int = int(os.getenv("RESULT_CACHE_MAX_ENTRIES", "128"))

        # LLM Model Parameters
        # Temperature: 0.7 leaves room for varied recipes while keeping JSON output stable
        self.TEMPERATURE: float = float(os.getenv("TEMPERATURE", "0.7"))
        # Max Output Tokens: 2048 is sufficient for a full recipe with instructions
        self.MAX_OUTPUT_TOKENS: int = int(os.getenv("MAX_OUTPUT_TOKENS", "2048"))

        # Retry Configuration for the generative client (exponential backoff)
        self.MAX_RETRIES: int = int(os.getenv("MAX_RETRIES", "3"))
        # DELAY_BETWEEN_RETRIES: Initial delay in seconds (doubled each retry)
        self.DELAY_BETWEEN_RETRIES: int = int(os.getenv("DELAY_BETWEEN_RETRIES", "1"))

        # Image ingredient detection
        self.MAX_IMAGE_SIZE_MB: int = int(os.getenv("MAX_IMAGE_SIZE_MB", "5"))
        self.MIN_INGREDIENT_CONFIDENCE: float = float(os.getenv("MIN_INGREDIENT_CONFIDENCE", "0.7"))

    def validate(self) -> None:
        """Validate required configuration.

        Raises:
            ValueError: If required API keys are missing or invalid values provided.
        """
        # Keys are only required for the tiers that are switched on
        if self.USE_GENERATIVE_FALLBACK and not self.GEMINI_API_KEY:
            raise ValueError("GEMINI_API_KEY environment variable is required when USE_GENERATIVE_FALLBACK=true")
        if self.USE_SPOONACULAR and not self.SPOONACULAR_API_KEY:
            raise ValueError("SPOONACULAR_API_KEY environment variable is required when USE_SPOONACULAR=true")
        if not (0.0 <= self.COVERAGE_THRESHOLD <= 1.0):
            raise ValueError(
                f"COVERAGE_THRESHOLD must be between 0.0 and 1.0, got: {self.COVERAGE_THRESHOLD}"
            )
        if not (0.0 <= self.THRESHOLD_FLOOR <= 1.0):
            raise ValueError(
                f"THRESHOLD_FLOOR must be between 0.0 and 1.0, got: {self.THRESHOLD_FLOOR}"
            )
        if self.MAX_THRESHOLD_RELAXATIONS < 0:
            raise ValueError(
                f"MAX_THRESHOLD_RELAXATIONS must be at least 0, got: {self.MAX_THRESHOLD_RELAXATIONS}"
            )
        if self.MAX_RESULTS < 1:
            raise ValueError(f"MAX_RESULTS must be at least 1, got: {self.MAX_RESULTS}")
        if self.SPOONACULAR_RESULTS < 1:
            raise ValueError(
                f"SPOONACULAR_RESULTS must be at least 1, got: {self.SPOONACULAR_RESULTS}"
            )
        if self.API_RATE_LIMIT < 1:
            raise ValueError(f"API_RATE_LIMIT must be at least 1, got: {self.API_RATE_LIMIT}")
        if self.RESULT_CACHE_MAX_ENTRIES < 0:
            raise ValueError(
                f"RESULT_CACHE_MAX_ENTRIES must be at least 0, got: {self.RESULT_CACHE_MAX_ENTRIES}"
            )
        if not (0.0 <= self.TEMPERATURE <= 1.0):
            raise ValueError(
                f"TEMPERATURE must be between 0.0 and 1.0, got: {self.TEMPERATURE}"
            )
        if self.MAX_OUTPUT_TOKENS < 512:
            raise ValueError(
                f"MAX_OUTPUT_TOKENS must be at least 512, got: {self.MAX_OUTPUT_TOKENS}"
            )
        if self.MAX_RETRIES < 1:
            raise ValueError(
                f"MAX_RETRIES must be at least 1, got: {self.MAX_RETRIES}"
            )
        if self.DELAY_BETWEEN_RETRIES < 1:
            raise ValueError(
                f"DELAY_BETWEEN_RETRIES must be at least 1 second, got: {self.DELAY_BETWEEN_RETRIES}"
            )
        if not (0.0 <= self.MIN_INGREDIENT_CONFIDENCE <= 1.0):
            raise ValueError(
                f"MIN_INGREDIENT_CONFIDENCE must be between 0.0 and 1.0, got: {self.MIN_INGREDIENT_CONFIDENCE}"
            )


# Create module-level config instance and validate immediately
config = Config()
config.validate()
