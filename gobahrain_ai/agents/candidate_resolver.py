"""
Candidate Resolver

Turns one user need into a bounded, deduplicated candidate set by running a
fixed resolution recipe: one embedding, a set of vector queries (fanned out
concurrently where categories are independent, strictly sequential inside a
fallback chain), then a merge in fixed category order.

Recipes:
- chat context: places / restaurants / events, merged and capped at 6
- day plan: places (3-step chain) / restaurants / breakfast (2-step) / events, capped at 18
- match clients: one client-filtered query, no fallback
- place lookup: one query with preference filters, static list on failure
- nearby: mode-specific queries, then distance/bearing ranking
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from loguru import logger

from ..algorithms.candidate_merge import exclude_kinds, merge_in_order, dedupe_candidates
from ..algorithms.geo import rank_nearby
from ..interfaces.vector_store import VectorSearchClient
from ..llm.embeddings import EmbeddingService
from ..schemas.ai_schemas import (
    CandidateRecord,
    NearbyMode,
    NearbyPOI,
    PlacePreferences,
    QuerySpec,
    RecordKind,
    ResolvedCandidateSet,
    ScoredMatch,
)
from ..utils.ai_helpers import join_labels
from ..utils.constants import (
    CHAT_CONTEXT_CAP,
    CHAT_EVENTS_TOP_K,
    CHAT_PLACES_TOP_K,
    CHAT_RESTAURANTS_TOP_K,
    CLIENT_TYPE_PLACE,
    CLIENT_TYPE_RESTAURANT,
    CUISINE_MAP,
    DEFAULT_CHAT_QUERY_TEXT,
    DEFAULT_MATCH_QUERY_TEXT,
    DEFAULT_QUERY_TEXT,
    FALLBACK_PLACES,
    MATCH_CLIENTS_TOP_K,
    MEAL_TYPE_BREAKFAST,
    NEARBY_DEFAULT_LIMIT,
    NEARBY_DEFAULT_RADIUS_KM,
    NEARBY_QUERY_TEXT,
    NEARBY_TOP_K,
    PLACE_LOOKUP_PLAN_TOP_K,
    PLAN_BREAKFAST_TOP_K,
    PLAN_CANDIDATE_CAP,
    PLAN_CUISINE_TOP_K,
    PLAN_EVENTS_TOP_K,
    PLAN_PLACES_BROAD_TOP_K,
    PLAN_PLACES_CAP,
    PLAN_SIMILAR_RESTAURANTS_TOP_K,
    RECORD_TYPE_CLIENT,
    RECORD_TYPE_EVENT,
)
from ..utils.exceptions import EmbeddingFailure
from ..utils.outcome import StageTimer, capture


PLACE_FILTER = {"record_type": RECORD_TYPE_CLIENT, "client_type": CLIENT_TYPE_PLACE}
RESTAURANT_FILTER = {"record_type": RECORD_TYPE_CLIENT, "client_type": CLIENT_TYPE_RESTAURANT}
EVENT_FILTER = {"record_type": RECORD_TYPE_EVENT}
CLIENT_FILTER = {"record_type": RECORD_TYPE_CLIENT}


def static_fallback_candidates() -> List[CandidateRecord]:
    """The hand-curated eight-place list as CandidateRecords"""
    return [
        CandidateRecord(
            id=f"fallback-{i}",
            kind=RecordKind.PLACE,
            name=entry["place_name"],
            description=entry.get("description"),
            category=entry.get("category"),
            meta=dict(entry),
        )
        for i, entry in enumerate(FALLBACK_PLACES, start=1)
    ]


def compose_query_text(*label_groups: Sequence[str]) -> str:
    """Join non-empty label groups as "a, b. c, d" ("" when all are empty)"""
    parts = [join_labels(labels) for labels in label_groups]
    return ". ".join(part for part in parts if part)


@dataclass
class CategoryResult:
    """Records fetched for one category, with any step errors and total latency"""
    label: str
    records: List[CandidateRecord] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    latency_ms: float = 0.0
    steps: int = 0

    @property
    def error_message(self) -> Optional[str]:
        return "; ".join(self.errors) if self.errors else None


class CandidateResolver:
    """
    Runs resolution recipes against the embedding and vector clients

    Every recipe call is stateless: nothing is cached or shared between calls.

    Usage:
        resolver = CandidateResolver(embedder, vector_client)
        resolved = await resolver.resolve_day_plan("", ["Cultural"], ["Cafe"])
    """

    def __init__(self, embedder: EmbeddingService, vector_client: VectorSearchClient, namespace: str = ""):
        self.embedder = embedder
        self.vector_client = vector_client
        self.namespace = namespace

    # ============================================
    # Building blocks
    # ============================================

    def _spec(self, query_text: str, filters: Optional[Dict[str, Any]], top_k: int, label: str) -> QuerySpec:
        return QuerySpec(
            query_text=query_text,
            filters=filters or {},
            top_k=top_k,
            namespace=self.namespace,
            label=label,
        )

    async def _fetch(self, vector: List[float], spec: QuerySpec, result: CategoryResult) -> List[CandidateRecord]:
        """One vector query; a failure is recorded and counts as zero results"""
        outcome = await capture(spec.label or result.label, self.vector_client.search(vector, spec))
        result.latency_ms += outcome.latency_ms
        result.steps += 1
        if not outcome.ok:
            result.errors.append(str(outcome.error))
            return []
        return outcome.value

    async def _fetch_chain(
        self,
        label: str,
        vector: List[float],
        steps: Sequence[QuerySpec],
        cap: int,
        post_filters: Optional[Sequence[Optional[Callable[[List[CandidateRecord]], List[CandidateRecord]]]]] = None,
    ) -> CategoryResult:
        """
        Run a fallback chain, strictly in order, until a step yields results

        Each step's output is post-filtered (when given) and truncated to cap.
        """
        result = CategoryResult(label=label)
        post_filters = post_filters or [None] * len(steps)

        for i, (spec, post) in enumerate(zip(steps, post_filters)):
            records = await self._fetch(vector, spec, result)
            if post is not None:
                records = post(records)
            records = records[:cap]
            if records:
                result.records = records
                break
            if i + 1 < len(steps):
                logger.warning(f"[{label}] step {i + 1} returned nothing, broadening query")

        return result

    async def _embed(self, query_text: str, default_text: str, timer: StageTimer) -> List[float]:
        with timer.stage("embedding"):
            return await self.embedder.embed_query(query_text, default_text=default_text)

    @staticmethod
    def _log_category(recipe: str, result: CategoryResult) -> None:
        logger.info(f"[{recipe}] {result.label}: {len(result.records)} in {result.latency_ms:.0f}ms")

    # ============================================
    # Chat recommendation context
    # ============================================

    async def resolve_chat_context(self, query_text: Optional[str], preferences: Sequence[str] = ()) -> ResolvedCandidateSet:
        """
        Allowed-places list for the chat assistant

        Never raises on provider failure: an embedding failure or three
        failed queries give an empty set, and the caller renders a prompt
        without the allowed-places constraint.
        """
        recipe = "chat-context"
        timer = StageTimer()
        text = (query_text or "").strip() or join_labels(preferences)

        try:
            vector = await self._embed(text, DEFAULT_CHAT_QUERY_TEXT, timer)
        except EmbeddingFailure as e:
            logger.error(f"[{recipe}] embedding failed, continuing without context: {e}")
            return ResolvedCandidateSet(
                recipe=recipe,
                cap=CHAT_CONTEXT_CAP,
                errors={"embedding": str(e)},
                timings_ms=timer.to_dict(),
            )

        text = text or DEFAULT_CHAT_QUERY_TEXT
        places, restaurants, events = await asyncio.gather(
            self._fetch_chain("places", vector, [self._spec(text, PLACE_FILTER, CHAT_PLACES_TOP_K, "places")], CHAT_PLACES_TOP_K),
            self._fetch_chain("restaurants", vector, [self._spec(text, RESTAURANT_FILTER, CHAT_RESTAURANTS_TOP_K, "restaurants")], CHAT_RESTAURANTS_TOP_K),
            self._fetch_chain("events", vector, [self._spec(text, EVENT_FILTER, CHAT_EVENTS_TOP_K, "events")], CHAT_EVENTS_TOP_K),
        )
        return self._assemble(
            recipe,
            [places, restaurants, events],
            cap=CHAT_CONTEXT_CAP,
            reserved=("restaurants", "events"),
            timer=timer,
            static_fallback=False,
        )

    # ============================================
    # Day-plan candidate assembly
    # ============================================

    async def resolve_day_plan(
        self,
        query_text: Optional[str],
        activities: Sequence[str] = (),
        food: Sequence[str] = (),
    ) -> ResolvedCandidateSet:
        """
        Candidates for the structured day plan

        One embedding is shared by all four categories. The categories run
        concurrently and are merged as places, restaurants, breakfast, events.

        Raises:
            EmbeddingFailure: nothing downstream is possible without a vector
        """
        recipe = "day-plan"
        timer = StageTimer()
        text = (query_text or "").strip() or compose_query_text(activities, food) or DEFAULT_QUERY_TEXT
        vector = await self._embed(text, DEFAULT_QUERY_TEXT, timer)

        categories = await asyncio.gather(
            self._plan_places(text, vector),
            self._plan_restaurants(text, vector, food),
            self._plan_breakfast(text, vector),
            self._fetch_chain("events", vector, [self._spec(text, EVENT_FILTER, PLAN_EVENTS_TOP_K, "events")], PLAN_EVENTS_TOP_K),
        )
        return self._assemble(
            recipe,
            list(categories),
            cap=PLAN_CANDIDATE_CAP,
            reserved=("breakfast", "events"),
            timer=timer,
            static_fallback=True,
        )

    async def _plan_places(self, text: str, vector: List[float]) -> CategoryResult:
        steps = [
            self._spec(text, PLACE_FILTER, PLAN_PLACES_CAP, "places"),
            self._spec(text, CLIENT_FILTER, PLAN_PLACES_BROAD_TOP_K, "places-broad"),
            self._spec(text, CLIENT_FILTER, PLAN_PLACES_BROAD_TOP_K, "places-any"),
        ]
        no_restaurants = lambda records: exclude_kinds(records, (RecordKind.RESTAURANT,))  # noqa: E731
        return await self._fetch_chain("places", vector, steps, PLAN_PLACES_CAP, [None, no_restaurants, None])

    async def _plan_restaurants(self, text: str, vector: List[float], food: Sequence[str]) -> CategoryResult:
        labels = [label.strip() for label in food if label and label.strip()]
        result = CategoryResult(label="restaurants")

        if not labels:
            spec = self._spec(text, {"client_type": CLIENT_TYPE_RESTAURANT}, PLAN_SIMILAR_RESTAURANTS_TOP_K, "restaurants")
            result.records = await self._fetch(vector, spec, result)
            return result

        exact_specs = [
            self._spec(
                text,
                {"client_type": CLIENT_TYPE_RESTAURANT, "cuisine": CUISINE_MAP.get(label, label)},
                PLAN_CUISINE_TOP_K,
                f"cuisine:{CUISINE_MAP.get(label, label)}",
            )
            for label in labels
        ]
        similar_spec = self._spec(text, {"client_type": CLIENT_TYPE_RESTAURANT}, PLAN_SIMILAR_RESTAURANTS_TOP_K, "restaurants-similar")

        fetched = await asyncio.gather(
            *(self._fetch(vector, spec, result) for spec in exact_specs),
            self._fetch(vector, similar_spec, result),
        )
        exact = [record for records in fetched[:-1] for record in records]
        similar = fetched[-1]
        logger.info(f"[day-plan] restaurants: {len(exact)} exact cuisine + {len(similar)} similar")

        # exact matches in preference order before similarity matches
        result.records = dedupe_candidates(exact + similar)
        return result

    async def _plan_breakfast(self, text: str, vector: List[float]) -> CategoryResult:
        steps = [
            self._spec(text, {"client_type": CLIENT_TYPE_RESTAURANT, "meal_type": MEAL_TYPE_BREAKFAST}, PLAN_BREAKFAST_TOP_K, "breakfast"),
            self._spec(text, {"client_type": CLIENT_TYPE_RESTAURANT}, PLAN_BREAKFAST_TOP_K, "breakfast-any"),
        ]
        return await self._fetch_chain("breakfast", vector, steps, PLAN_BREAKFAST_TOP_K)

    # ============================================
    # Merge
    # ============================================

    def _assemble(
        self,
        recipe: str,
        categories: List[CategoryResult],
        cap: int,
        reserved: Sequence[str],
        timer: StageTimer,
        static_fallback: bool,
    ) -> ResolvedCandidateSet:
        errors: Dict[str, str] = {}
        for category in categories:
            self._log_category(recipe, category)
            timer.add(category.label, category.latency_ms)
            if category.error_message:
                errors[category.label] = category.error_message

        merged = merge_in_order([(c.label, c.records) for c in categories], cap=cap, reserved=reserved)
        candidates = merged.candidates
        used_fallback = False

        if not candidates and static_fallback:
            logger.warning(f"[{recipe}] every category came back empty, using static place list")
            candidates = static_fallback_candidates()
            used_fallback = True

        logger.info(
            f"[{recipe}] {len(candidates)} candidates "
            f"(counts={merged.category_counts}, total {timer.elapsed_ms()}ms)"
        )

        return ResolvedCandidateSet(
            recipe=recipe,
            candidates=candidates,
            cap=cap,
            category_counts=merged.category_counts,
            used_static_fallback=used_fallback,
            errors=errors,
            timings_ms=timer.to_dict(),
        )

    # ============================================
    # Client-profile matching
    # ============================================

    async def match_clients(
        self,
        preferences: Sequence[str] = (),
        food_categories: Sequence[str] = (),
        top_k: int = MATCH_CLIENTS_TOP_K,
    ) -> List[ScoredMatch]:
        """
        Client profiles nearest to the user's preference labels

        No fallback: provider failures propagate to the caller.
        """
        timer = StageTimer()
        text = compose_query_text(preferences, food_categories)
        vector = await self._embed(text, DEFAULT_MATCH_QUERY_TEXT, timer)

        with timer.stage("clients"):
            matches = await self.vector_client.query(
                vector,
                min(top_k, self.vector_client.max_top_k),
                filters=CLIENT_FILTER,
                namespace=self.namespace or None,
            )

        logger.info(f"[match-clients] {len(matches)} clients ({timer.to_dict()})")
        return matches

    # ============================================
    # Place lookup
    # ============================================

    async def resolve_place_lookup(
        self,
        query_text: Optional[str],
        top_k: int = PLACE_LOOKUP_PLAN_TOP_K,
        preferences: Optional[PlacePreferences] = None,
    ) -> ResolvedCandidateSet:
        """
        Places for the plain-text plan and the place listing

        A failed or empty query substitutes the eight static places.

        Raises:
            EmbeddingFailure: when the query cannot be embedded
        """
        recipe = "place-lookup"
        timer = StageTimer()
        text = (query_text or "").strip() or DEFAULT_QUERY_TEXT
        vector = await self._embed(text, DEFAULT_QUERY_TEXT, timer)

        filters = preferences.as_filters() if preferences else {}
        result = await self._fetch_chain("places", vector, [self._spec(text, filters, top_k, "places")], top_k)
        if result.error_message:
            logger.warning(f"[{recipe}] vector search failed, using fallback: {result.error_message}")

        return self._assemble(recipe, [result], cap=top_k, reserved=(), timer=timer, static_fallback=True)

    # ============================================
    # Nearby (AR explorer)
    # ============================================

    def _nearby_specs(self, mode: NearbyMode) -> List[QuerySpec]:
        text = NEARBY_QUERY_TEXT[mode.value]
        places = self._spec(text, PLACE_FILTER, NEARBY_TOP_K, "places")
        restaurants = self._spec(text, RESTAURANT_FILTER, NEARBY_TOP_K, "restaurants")
        events = self._spec(text, EVENT_FILTER, NEARBY_TOP_K, "events")

        if mode == NearbyMode.LANDMARKS:
            return [places]
        if mode == NearbyMode.FOOD:
            return [restaurants, events]
        return [places, restaurants, events]

    async def resolve_nearby(
        self,
        lat: float,
        lng: float,
        mode: NearbyMode = NearbyMode.ALL,
        radius_km: float = NEARBY_DEFAULT_RADIUS_KM,
        limit: int = NEARBY_DEFAULT_LIMIT,
    ) -> List[NearbyPOI]:
        """
        Points of interest around the viewer, nearest first

        Records without coordinates are excluded. A failed category is
        skipped; an embedding failure propagates.
        """
        mode = NearbyMode(mode)
        timer = StageTimer()
        specs = self._nearby_specs(mode)
        vector = await self._embed(specs[0].query_text, NEARBY_QUERY_TEXT[mode.value], timer)

        categories = await asyncio.gather(
            *(self._fetch_chain(spec.label, vector, [spec], spec.top_k) for spec in specs)
        )
        for category in categories:
            self._log_category("nearby", category)

        candidates = dedupe_candidates(r for category in categories for r in category.records)
        pois = rank_nearby(candidates, lat, lng, radius_km=radius_km, limit=limit)

        logger.info(
            f"[nearby] {len(pois)} of {len(candidates)} candidates within {radius_km}km "
            f"(mode={mode.value}, total {timer.elapsed_ms()}ms)"
        )
        return pois
