# agents/planner_agent.py
"""
Planner Agent (user-facing)
Runs the full retrieve -> prompt -> generate -> parse pipeline for:
1. Plain-text day plan from a free-text request
2. Structured day plan from activity/food preferences
3. Chat assistant with an allowed-places list
4. Client matching, place listing and nearby points of interest
5. Community review search with one-line suggestions

Uses:
- CandidateResolver for retrieval recipes
- Prompt builders for deterministic prompts
- GenerationClient for the single model call
- Response parser for structured output
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from loguru import logger

from ..algorithms.candidate_merge import count_used_places
from ..interfaces.community_store import CommunityStore
from ..llm.generator import (
    CHAT_PARAMS,
    DAY_PLAN_PARAMS,
    PLAN_TEXT_PARAMS,
    REVIEW_MATCH_PARAMS,
    GenerationClient,
)
from ..llm.prompts import (
    PLAN_TEXT_SYSTEM_PROMPT,
    REVIEW_MATCH_SYSTEM_PROMPT,
    build_chat_system_prompt,
    build_day_plan_system_prompt,
    build_day_plan_user_message,
    build_places_context,
    build_plan_text_user_message,
    build_review_match_user_message,
    compose_messages,
)
from ..llm.response_parser import parse_chat_reply, parse_day_plan, parse_review_matches, validate_plan
from ..schemas.ai_schemas import (
    ChatReply,
    ChatTurn,
    CommunityReview,
    GeneratedPlanItem,
    NearbyMode,
    NearbyPOI,
    PlacePreferences,
    ResolvedCandidateSet,
    ScoredMatch,
)
from ..utils.constants import (
    CHAT_HISTORY_TURNS,
    COMMUNITY_MIN_RATING,
    COMMUNITY_QUERY_MAX_LEN,
    MATCH_CLIENTS_TOP_K,
    NEARBY_DEFAULT_LIMIT,
    NEARBY_DEFAULT_RADIUS_KM,
    PLACE_LOOKUP_LIST_TOP_K,
    PLACE_LOOKUP_PLAN_TOP_K,
)
from ..utils.exceptions import DataGatewayFailure
from ..utils.outcome import StageTimer
from .candidate_resolver import CandidateResolver


@dataclass
class PlanTextResult:
    """Plain-text day plan"""
    day_plan: str
    used_places_count: int  # approximate
    resolved: ResolvedCandidateSet
    timings_ms: dict = field(default_factory=dict)


@dataclass
class DayPlanResult:
    """Structured day plan with its grounding report"""
    plan: List[GeneratedPlanItem]
    resolved: ResolvedCandidateSet
    ungrounded_spots: List[str] = field(default_factory=list)
    timings_ms: dict = field(default_factory=dict)


@dataclass
class ChatResult:
    """Assistant reply plus the size of the allowed-places list it was given"""
    reply: ChatReply
    resolved: ResolvedCandidateSet
    timings_ms: dict = field(default_factory=dict)


class PlannerAgent:
    """
    Go Bahrain planner: retrieval-augmented day plans and chat.

    All collaborators are injected, so the agent holds no global state.
    """

    def __init__(
        self,
        resolver: CandidateResolver,
        generator: GenerationClient,
        community_store: Optional[CommunityStore] = None,
        review_model: Optional[str] = None,
        strict_grounding: bool = False,
    ):
        self.resolver = resolver
        self.generator = generator
        self.community_store = community_store
        self.review_model = review_model
        self.strict_grounding = strict_grounding

    # ============================================
    # Plain-text day plan
    # ============================================

    async def plan_text(
        self,
        message: str,
        preferences: Optional[PlacePreferences] = None,
        top_k: int = PLACE_LOOKUP_PLAN_TOP_K,
    ) -> PlanTextResult:
        """
        Embed the request, look up places and generate a Morning/Afternoon/Evening plan

        Args:
            message: User request (already validated non-empty by the caller)
            preferences: Optional vibe/category/price_range filters
            top_k: Place lookup size

        Returns:
            PlanTextResult with the approximate used-places count
        """
        timer = StageTimer()
        resolved = await self.resolver.resolve_place_lookup(message, top_k=top_k, preferences=preferences)

        places_context = build_places_context(resolved.candidates)
        user_content = build_plan_text_user_message(message, places_context)

        with timer.stage("generation"):
            day_plan = await self.generator.complete(
                PLAN_TEXT_SYSTEM_PROMPT,
                [{"role": "user", "content": user_content}],
                PLAN_TEXT_PARAMS,
            )

        used = count_used_places(resolved.candidates, day_plan)
        logger.info(f"[ai-plan] generation: {timer.stages_ms.get('generation', 0):.0f}ms ({used} places used)")

        return PlanTextResult(
            day_plan=day_plan,
            used_places_count=used,
            resolved=resolved,
            timings_ms={**resolved.timings_ms, **timer.to_dict()},
        )

    # ============================================
    # Structured day plan
    # ============================================

    async def plan_day(
        self,
        message: Optional[str] = None,
        activities: Sequence[str] = (),
        food: Sequence[str] = (),
        strict: Optional[bool] = None,
    ) -> DayPlanResult:
        """
        Build a JSON day plan from preference labels

        Args:
            message: Optional free-text request (preferred as query text)
            activities: Activity preference labels
            food: Food category labels
            strict: Reject plans naming spots outside the candidate set
                    (default: configured STRICT_PLAN_GROUNDING)

        Raises:
            EmbeddingFailure, GenerationFailure, PlanParseFailure, UngroundedPlanError
        """
        strict = self.strict_grounding if strict is None else strict
        timer = StageTimer()

        resolved = await self.resolver.resolve_day_plan(message, activities, food)
        candidates = resolved.candidates

        system_prompt = build_day_plan_system_prompt(candidates, activities, food)
        user_message = build_day_plan_user_message(candidates, activities, food, message)
        logger.debug(f"[day-plan] system prompt:\n{system_prompt}")

        with timer.stage("generation"):
            raw = await self.generator.complete(
                system_prompt,
                [{"role": "user", "content": user_message}],
                DAY_PLAN_PARAMS,
            )

        plan = parse_day_plan(raw)
        ungrounded = validate_plan(plan, candidates, strict=strict)

        logger.info(
            f"[day-plan] {len(plan)} stops from {len(candidates)} candidates "
            f"({len(ungrounded)} ungrounded, generation {timer.stages_ms.get('generation', 0):.0f}ms)"
        )

        return DayPlanResult(
            plan=plan,
            resolved=resolved,
            ungrounded_spots=ungrounded,
            timings_ms={**resolved.timings_ms, **timer.to_dict()},
        )

    # ============================================
    # Chat
    # ============================================

    async def chat(
        self,
        message: str,
        history: Sequence[ChatTurn] = (),
        preferences: Sequence[str] = (),
    ) -> ChatResult:
        """
        Answer one chat message

        Retrieval problems never fail the chat: with no candidates the prompt
        simply has no allowed-places list. Generation failure propagates.
        """
        timer = StageTimer()
        resolved = await self.resolver.resolve_chat_context(message, preferences)

        system_prompt = build_chat_system_prompt(resolved.candidates, preferences)
        messages = compose_messages(history, message, limit=CHAT_HISTORY_TURNS)

        with timer.stage("generation"):
            raw = await self.generator.complete(system_prompt, messages, CHAT_PARAMS)

        reply = parse_chat_reply(raw)
        logger.info(
            f"[chat] reply with {len(reply.actions)} action(s), "
            f"{len(resolved.candidates)} allowed places"
        )
        return ChatResult(reply=reply, resolved=resolved, timings_ms={**resolved.timings_ms, **timer.to_dict()})

    # ============================================
    # Retrieval-only operations
    # ============================================

    async def match_clients(
        self,
        preferences: Sequence[str] = (),
        food_categories: Sequence[str] = (),
        top_k: int = MATCH_CLIENTS_TOP_K,
    ) -> List[ScoredMatch]:
        return await self.resolver.match_clients(preferences, food_categories, top_k=top_k)

    async def list_places(
        self,
        query: Optional[str] = None,
        top_k: int = PLACE_LOOKUP_LIST_TOP_K,
        preferences: Optional[PlacePreferences] = None,
    ) -> ResolvedCandidateSet:
        return await self.resolver.resolve_place_lookup(query, top_k=top_k, preferences=preferences)

    async def nearby(
        self,
        lat: float,
        lng: float,
        mode: NearbyMode = NearbyMode.ALL,
        radius_km: float = NEARBY_DEFAULT_RADIUS_KM,
        limit: int = NEARBY_DEFAULT_LIMIT,
    ) -> List[NearbyPOI]:
        return await self.resolver.resolve_nearby(lat, lng, mode=mode, radius_km=radius_km, limit=limit)

    # ============================================
    # Community review search
    # ============================================

    async def search_community(self, query: str) -> List[CommunityReview]:
        """
        Match community reviews to a search and attach a one-line suggestion

        Only well-rated reviews are shown to the model. Unparseable model
        output yields no matches.

        Raises:
            DataGatewayFailure: community store missing or failing
            GenerationFailure: model call failed
        """
        term = (query or "").strip()[:COMMUNITY_QUERY_MAX_LEN]
        if not term:
            return []
        if self.community_store is None:
            raise DataGatewayFailure("Community store is not configured")

        reviews = await self.community_store.fetch_recent_reviews()
        well_rated = [r for r in reviews if r.rating is not None and r.rating >= COMMUNITY_MIN_RATING]
        if not well_rated:
            logger.info(f"[community] no well-rated reviews to match for '{term}'")
            return []

        raw = await self.generator.complete(
            REVIEW_MATCH_SYSTEM_PROMPT,
            [{"role": "user", "content": build_review_match_user_message(term, well_rated)}],
            REVIEW_MATCH_PARAMS,
            model=self.review_model,
        )
        suggestions = parse_review_matches(raw)

        results = [
            review.model_copy(update={"ai_suggestion": suggestions[review.id]})
            for review in reviews
            if review.id in suggestions
        ]
        logger.info(f"[community] '{term}': {len(results)} of {len(well_rated)} reviews matched")
        return results
