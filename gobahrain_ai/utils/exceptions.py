"""
Exception hierarchy for the recommendation pipeline

Every error carries a human-readable message that is safe to return to a caller.
Provider errors keep the provider's own message verbatim.
"""

from typing import List, Optional


class GoBahrainError(Exception):
    """Base class for all pipeline errors"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(GoBahrainError):
    """Required credentials or hosts are missing"""


class ProviderError(GoBahrainError):
    """An external service answered with a failure or could not be reached"""

    provider = "provider"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.message} (status {self.status_code})"
        return self.message


class EmbeddingFailure(ProviderError):
    provider = "embedding"


class VectorSearchFailure(ProviderError):
    provider = "vector-search"


class GenerationFailure(ProviderError):
    provider = "generation"


class DataGatewayFailure(ProviderError):
    provider = "data-gateway"


class PlanParseFailure(GoBahrainError):
    """Model output contained no usable day-plan array"""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text


class UngroundedPlanError(GoBahrainError):
    """Strict grounding rejected a plan naming spots outside the candidate set"""

    def __init__(self, spots: List[str]):
        super().__init__(
            "Plan references places that were not offered to the planner: "
            + ", ".join(spots)
        )
        self.spots = spots
