"""
Utilities Module
Errors, outcomes and helper functions for the AI service
"""

from .ai_helpers import (
    compact_whitespace,
    format_distance,
    join_labels,
    provider_error_message,
    to_float,
    truncate_text,
)
from .exceptions import (
    ConfigurationError,
    DataGatewayFailure,
    EmbeddingFailure,
    GenerationFailure,
    GoBahrainError,
    PlanParseFailure,
    ProviderError,
    UngroundedPlanError,
    VectorSearchFailure,
)
from .outcome import Outcome, StageTimer, capture

__all__ = [
    "compact_whitespace",
    "format_distance",
    "join_labels",
    "provider_error_message",
    "to_float",
    "truncate_text",
    "ConfigurationError",
    "DataGatewayFailure",
    "EmbeddingFailure",
    "GenerationFailure",
    "GoBahrainError",
    "PlanParseFailure",
    "ProviderError",
    "UngroundedPlanError",
    "VectorSearchFailure",
    "Outcome",
    "StageTimer",
    "capture",
]
