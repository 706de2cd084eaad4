# schemas/__init__.py
"""
Pydantic Schemas Package

Contains all Pydantic v2 models for:
- Retrieval records (matches, candidates, query specs)
- Generation output (day plans, chat replies)
- API requests/responses
"""

from .ai_schemas import (
    # Enums
    RecordKind, TimeOfDay, PlanItemType, ChatRole, ActionType, NearbyMode, ExpectedShape,
    # Retrieval
    Coordinates, ScoredMatch, CandidateRecord, QuerySpec, ResolvedCandidateSet,
    # Preferences
    PlacePreferences, PlanPreferences,
    # Generation output
    GeneratedPlanItem, ChatAction, ChatReply, ChatTurn, CommunityReview, NearbyPOI,
    # API
    AIPlanRequest, AIPlanResponse, DayPlanRequest, DayPlanResponse,
    MatchClientsRequest, MatchClientsResponse, ChatRequest, ChatResponse,
    PlacesResponse, NearbyRequest, NearbyResponse,
    CommunitySearchRequest, CommunitySearchResponse, ErrorResponse,
)

__all__ = [
    # Enums
    "RecordKind", "TimeOfDay", "PlanItemType", "ChatRole", "ActionType", "NearbyMode", "ExpectedShape",
    # Retrieval
    "Coordinates", "ScoredMatch", "CandidateRecord", "QuerySpec", "ResolvedCandidateSet",
    # Preferences
    "PlacePreferences", "PlanPreferences",
    # Generation output
    "GeneratedPlanItem", "ChatAction", "ChatReply", "ChatTurn", "CommunityReview", "NearbyPOI",
    # API
    "AIPlanRequest", "AIPlanResponse", "DayPlanRequest", "DayPlanResponse",
    "MatchClientsRequest", "MatchClientsResponse", "ChatRequest", "ChatResponse",
    "PlacesResponse", "NearbyRequest", "NearbyResponse",
    "CommunitySearchRequest", "CommunitySearchResponse", "ErrorResponse",
]
