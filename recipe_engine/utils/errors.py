"""Error taxonomy for recipe source resolution.

Resolver failures are raised as these exceptions and converted into
``TierFailure`` records by the orchestrator; they never reach the caller of
``recommend()``. Caller misuse is reported with ``ValueError`` instead.
"""

from typing import Optional

from recipe_engine.models.models import FailureKind


class RecipeEngineError(Exception):
    """Base class for engine errors that map onto a tier failure kind."""

    kind: FailureKind = FailureKind.PROVIDER_UNAVAILABLE


class ProviderUnavailable(RecipeEngineError):
    """A resolver could not reach, or got an error from, its backing service."""

    kind = FailureKind.PROVIDER_UNAVAILABLE

    def __init__(self, message: str, provider: Optional[str] = None, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.provider = provider
        self.status = status


class QuotaExceeded(ProviderUnavailable):
    """The external search provider rejected the call for quota/billing (HTTP 402)."""

    kind = FailureKind.QUOTA_EXCEEDED

    def __init__(self, message: str = "API quota exceeded", provider: Optional[str] = None) -> None:
        super().__init__(message, provider=provider, status=402)


class MalformedPayload(RecipeEngineError):
    """No valid structured payload could be recovered from generative output.

    The raw text is kept for diagnostic logging.
    """

    kind = FailureKind.MALFORMED_PAYLOAD

    def __init__(self, message: str, raw_text: str = "") -> None:
        super().__init__(message)
        self.raw_text = raw_text
