# schemas/ai_schemas.py
"""
Pydantic v2 schemas for the Go Bahrain recommendation pipeline
Covers retrieval records, plan/chat output shapes and the HTTP contracts
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ============================================
# Enums
# ============================================

class RecordKind(str, Enum):
    PLACE = "place"
    RESTAURANT = "restaurant"
    EVENT = "event"
    CLIENT = "client"


class TimeOfDay(str, Enum):
    MORNING = "Morning"
    AFTERNOON = "Afternoon"
    EVENING = "Evening"


class PlanItemType(str, Enum):
    PLACE = "place"
    RESTAURANT = "restaurant"
    EVENT = "event"


class ChatRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ActionType(str, Enum):
    SHOW_POSTS = "show_posts"      # highlight community posts matching a keyword
    SHOW_REVIEWS = "show_reviews"  # filter reviews by place name


class NearbyMode(str, Enum):
    LANDMARKS = "landmarks"
    ALL = "all"
    FOOD = "food"


class ExpectedShape(str, Enum):
    DAY_PLAN = "day_plan"
    CHAT_REPLY = "chat_reply"
    PLAIN_TEXT = "plain_text"


# ============================================
# Retrieval
# ============================================

class Coordinates(BaseModel):
    """Latitude/longitude pair"""
    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class ScoredMatch(BaseModel):
    """One raw match from the vector index"""
    id: str
    score: float = 0.0
    metadata: Dict[str, Any] = Field(default_factory=dict)


class CandidateRecord(BaseModel):
    """
    Normalized view of one retrievable item, whatever query produced it.
    Built once at the vector-store boundary and never mutated afterwards.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    kind: RecordKind
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    category: Optional[str] = None
    cuisine: Optional[str] = None
    venue: Optional[str] = None
    price_range: Optional[str] = None
    rating: Optional[float] = None
    location: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    score: float = 0.0
    meta: Dict[str, Any] = Field(default_factory=dict)

    @property
    def dedupe_name(self) -> str:
        return self.name.strip().casefold()


class QuerySpec(BaseModel):
    """Input contract for one vector lookup inside a recipe"""
    model_config = ConfigDict(frozen=True)

    query_text: str
    filters: Dict[str, Any] = Field(default_factory=dict)  # equality clauses, AND-ed
    top_k: int = Field(6, ge=1)
    namespace: str = ""
    label: str = ""

    @field_validator("query_text")
    @classmethod
    def _query_text_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("query_text must not be empty")
        return value

    def clamped(self, max_top_k: int) -> "QuerySpec":
        """Copy with top_k clamped to the provider maximum"""
        if self.top_k <= max_top_k:
            return self
        return self.model_copy(update={"top_k": max_top_k})


class ResolvedCandidateSet(BaseModel):
    """Ordered, deduplicated, capped candidates produced by one recipe run"""
    recipe: str
    candidates: List[CandidateRecord] = Field(default_factory=list)
    cap: int = 0
    category_counts: Dict[str, int] = Field(default_factory=dict)
    used_static_fallback: bool = False
    errors: Dict[str, str] = Field(default_factory=dict)
    timings_ms: Dict[str, float] = Field(default_factory=dict)

    @property
    def names(self) -> List[str]:
        return [c.name for c in self.candidates]

    @property
    def is_empty(self) -> bool:
        return not self.candidates

    def __len__(self) -> int:
        return len(self.candidates)


# ============================================
# Preferences
# ============================================

class PlacePreferences(BaseModel):
    """Metadata preferences applied as filters in the place lookup"""
    vibe: Optional[str] = None
    category: Optional[str] = None
    price_range: Optional[str] = None

    def as_filters(self) -> Dict[str, str]:
        return {
            key: str(value)
            for key, value in (
                ("vibe", self.vibe),
                ("category", self.category),
                ("price_range", self.price_range),
            )
            if value
        }


class PlanPreferences(BaseModel):
    """Activity and food labels chosen by the user"""
    activities: List[str] = Field(default_factory=list)
    food: List[str] = Field(default_factory=list)

    @field_validator("activities", "food")
    @classmethod
    def _drop_blank_labels(cls, value: List[str]) -> List[str]:
        return [label.strip() for label in value if label and label.strip()]


# ============================================
# Generation Output
# ============================================

class GeneratedPlanItem(BaseModel):
    """One stop of a day plan"""
    spot: str = Field(..., min_length=1)
    time: TimeOfDay
    type: PlanItemType
    lat: Optional[float] = None
    lng: Optional[float] = None
    reason: str = ""

    @field_validator("time", mode="before")
    @classmethod
    def _normalize_time(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().capitalize()
        return value

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("lat", "lng", mode="before")
    @classmethod
    def _blank_coordinate(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def coordinates(self) -> Optional[Coordinates]:
        if self.lat is None or self.lng is None:
            return None
        return Coordinates(lat=self.lat, lng=self.lng)


class ChatAction(BaseModel):
    """Structured UI action proposed by the assistant"""
    type: ActionType
    query: Optional[str] = None
    place: Optional[str] = None

    @model_validator(mode="after")
    def _require_identifying_field(self) -> "ChatAction":
        if self.type == ActionType.SHOW_POSTS and not (self.query or "").strip():
            raise ValueError("show_posts requires query")
        if self.type == ActionType.SHOW_REVIEWS and not (self.place or "").strip():
            raise ValueError("show_reviews requires place")
        return self


class ChatReply(BaseModel):
    """Parsed assistant reply"""
    reply: str
    actions: List[ChatAction] = Field(default_factory=list)


class ChatTurn(BaseModel):
    """One message of a conversation"""
    role: ChatRole
    text: str
    actions: List[ChatAction] = Field(default_factory=list)


class CommunityReview(BaseModel):
    """Community post as read from the relational backend"""
    id: str
    review_text: str = ""
    rating: Optional[float] = None
    place: Optional[str] = None
    hashtags: Optional[str] = None
    upvotes: int = 0
    created_at: Optional[str] = None
    ai_suggestion: Optional[str] = None


class NearbyPOI(BaseModel):
    """Candidate positioned relative to the viewer"""
    candidate: CandidateRecord
    distance_km: float
    bearing_deg: float
    distance_label: str


# ============================================
# HTTP: Day Plan
# ============================================

class AIPlanRequest(BaseModel):
    """POST /api/ai-plan"""
    message: Optional[str] = None
    preferences: Optional[PlacePreferences] = None


class AIPlanResponse(BaseModel):
    day_plan: str
    used_places_count: int  # approximate: case-insensitive substring matches
    latency_ms: int


class DayPlanRequest(PlanPreferences):
    """POST /api/ai-plan/day"""
    message: Optional[str] = None
    strict: Optional[bool] = None


class DayPlanResponse(BaseModel):
    plan: List[GeneratedPlanItem]
    candidates_count: int
    ungrounded_spots: List[str] = Field(default_factory=list)
    used_static_fallback: bool = False
    latency_ms: int


class MatchClientsRequest(BaseModel):
    """POST /api/ai-plan/match-clients"""
    model_config = ConfigDict(populate_by_name=True)

    preferences: List[str] = Field(default_factory=list)
    food_categories: List[str] = Field(default_factory=list, alias="foodCategories")


class MatchClientsResponse(BaseModel):
    clients: List[ScoredMatch]
    latency_ms: int


# ============================================
# HTTP: Chat, Places, Community
# ============================================

class ChatRequest(BaseModel):
    """POST /api/chat"""
    message: Optional[str] = None
    history: List[ChatTurn] = Field(default_factory=list)
    preferences: List[str] = Field(default_factory=list)


class ChatResponse(BaseModel):
    reply: str
    actions: List[ChatAction] = Field(default_factory=list)
    allowed_places_count: int
    latency_ms: int


class PlacesResponse(BaseModel):
    places: List[CandidateRecord]
    used_static_fallback: bool = False
    latency_ms: int


class NearbyRequest(BaseModel):
    """POST /api/places/nearby"""
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    mode: NearbyMode = NearbyMode.ALL
    radius_km: float = Field(10.0, gt=0, le=100)
    limit: int = Field(20, ge=1, le=100)


class NearbyResponse(BaseModel):
    pois: List[NearbyPOI]
    latency_ms: int


class CommunitySearchRequest(BaseModel):
    """POST /api/community/search"""
    query: str = ""


class CommunitySearchResponse(BaseModel):
    results: List[CommunityReview]
    latency_ms: int


class ErrorResponse(BaseModel):
    """Error body for every endpoint"""
    error: str
    latency_ms: int
