"""
Tests for the candidate resolution recipes
"""
import pytest

from gobahrain_ai.agents.candidate_resolver import (
    CLIENT_FILTER,
    EVENT_FILTER,
    PLACE_FILTER,
    RESTAURANT_FILTER,
    CandidateResolver,
    compose_query_text,
)
from gobahrain_ai.schemas.ai_schemas import NearbyMode, PlacePreferences, RecordKind, ScoredMatch
from gobahrain_ai.utils.constants import DEFAULT_QUERY_TEXT
from gobahrain_ai.utils.exceptions import EmbeddingFailure, VectorSearchFailure
from tests.fakes import FakeEmbedder, FakeVectorClient, embedding_failure, filter_key, record

RESTAURANT_ONLY = {"client_type": "restaurant"}
BREAKFAST = {"client_type": "restaurant", "meal_type": "Breakfast"}


def cuisine(value):
    return {"client_type": "restaurant", "cuisine": value}


def places(n, prefix="Place"):
    return [record(f"{prefix} {i}", "place") for i in range(n)]


def unavailable():
    return VectorSearchFailure("Service Unavailable", status_code=503)


class TestComposeQueryText:
    def test_groups_joined(self):
        assert compose_query_text(["Cultural", "Nature"], ["Cafe"]) == "Cultural, Nature. Cafe"

    def test_empty_groups_skipped(self):
        assert compose_query_text([], ["Cafe"]) == "Cafe"
        assert compose_query_text([], []) == ""


class TestChatContext:
    """Chat recipe: places / restaurants / events capped at 6"""

    def setup_method(self):
        self.embedder = FakeEmbedder()

    @pytest.mark.asyncio
    async def test_cap_keeps_a_restaurant_and_an_event(self):
        vector_client = FakeVectorClient({
            filter_key(PLACE_FILTER): places(10),
            filter_key(RESTAURANT_FILTER): [record("Saffron", "restaurant")],
            filter_key(EVENT_FILTER): [record("Jazz Night", "event")],
        })
        resolver = CandidateResolver(self.embedder, vector_client)

        resolved = await resolver.resolve_chat_context("dinner and music")

        assert len(resolved.candidates) == 6
        assert "Saffron" in resolved.names
        assert "Jazz Night" in resolved.names
        assert resolved.names[:4] == ["Place 0", "Place 1", "Place 2", "Place 3"]
        assert [spec.top_k for spec in vector_client.calls] == [10, 10, 6]

    @pytest.mark.asyncio
    async def test_embedding_failure_gives_empty_set(self):
        resolver = CandidateResolver(FakeEmbedder(error=embedding_failure()), FakeVectorClient())

        resolved = await resolver.resolve_chat_context("hello")

        assert resolved.is_empty
        assert "embedding" in resolved.errors
        assert not resolved.used_static_fallback

    @pytest.mark.asyncio
    async def test_failed_category_is_skipped(self):
        vector_client = FakeVectorClient({
            filter_key(PLACE_FILTER): unavailable(),
            filter_key(EVENT_FILTER): [record("Jazz Night", "event")],
        })
        resolver = CandidateResolver(self.embedder, vector_client)

        resolved = await resolver.resolve_chat_context("hello")

        assert resolved.names == ["Jazz Night"]
        assert "places" in resolved.errors

    @pytest.mark.asyncio
    async def test_preferences_used_when_message_blank(self):
        resolver = CandidateResolver(self.embedder, FakeVectorClient())

        await resolver.resolve_chat_context("  ", ["Cafe", "Seafood"])

        assert self.embedder.calls[0][0] == "Cafe, Seafood"


class TestDayPlan:
    """Day-plan recipe"""

    def setup_method(self):
        self.embedder = FakeEmbedder()

    @pytest.mark.asyncio
    async def test_single_embedding_and_category_order(self):
        vector_client = FakeVectorClient({
            filter_key(PLACE_FILTER): places(2),
            filter_key(RESTAURANT_ONLY): [record("Saffron", "restaurant")],
            filter_key(BREAKFAST): [record("Morning Bakery", "restaurant", meal_type="Breakfast")],
            filter_key(EVENT_FILTER): [record("Jazz Night", "event")],
        })
        resolver = CandidateResolver(self.embedder, vector_client)

        resolved = await resolver.resolve_day_plan(None, ["Cultural"], [])

        assert len(self.embedder.calls) == 1
        assert self.embedder.calls[0][0] == "Cultural"
        assert resolved.names == ["Place 0", "Place 1", "Saffron", "Morning Bakery", "Jazz Night"]
        assert resolved.category_counts == {"places": 2, "restaurants": 1, "breakfast": 1, "events": 1}
        assert resolved.cap == 18

    @pytest.mark.asyncio
    async def test_places_broaden_once_and_exclude_restaurants(self):
        vector_client = FakeVectorClient({
            filter_key(PLACE_FILTER): [],
            filter_key(CLIENT_FILTER): [record("Saffron", "restaurant"), record("Bahrain Fort", "client")],
        })
        resolver = CandidateResolver(self.embedder, vector_client)

        resolved = await resolver.resolve_day_plan("history", [], [])

        place_calls = [spec for spec in vector_client.calls if spec.label.startswith("places")]
        assert [spec.label for spec in place_calls] == ["places", "places-broad"]
        assert place_calls[1].top_k == 12
        assert resolved.category_counts["places"] == 1
        assert "Bahrain Fort" in resolved.names

    @pytest.mark.asyncio
    async def test_last_places_step_stays_on_clients(self):
        vector_client = FakeVectorClient({
            filter_key(PLACE_FILTER): [],
            filter_key(CLIENT_FILTER): [record("Saffron", "restaurant")],
            filter_key(EVENT_FILTER): [record("Jazz Night", "event")],
        })
        resolver = CandidateResolver(self.embedder, vector_client)

        resolved = await resolver.resolve_day_plan("history", [], [])

        place_calls = [spec for spec in vector_client.calls if spec.label.startswith("places")]
        assert [spec.label for spec in place_calls] == ["places", "places-broad", "places-any"]
        assert dict(place_calls[2].filters) == {"record_type": "client"}
        assert place_calls[2].top_k == 12
        # the last step keeps restaurants; events stay in their own category
        assert resolved.category_counts["places"] == 1
        assert resolved.category_counts["events"] == 1
        assert resolved.names.index("Saffron") < resolved.names.index("Jazz Night")

    @pytest.mark.asyncio
    async def test_places_failure_also_broadens(self):
        vector_client = FakeVectorClient({
            filter_key(PLACE_FILTER): unavailable(),
            filter_key(CLIENT_FILTER): places(3),
        })
        resolver = CandidateResolver(self.embedder, vector_client)

        resolved = await resolver.resolve_day_plan("history", [], [])

        assert resolved.category_counts["places"] == 3
        assert "places" in resolved.errors

    @pytest.mark.asyncio
    async def test_breakfast_then_cuisine_exact_match_first(self):
        bakery = record("Morning Bakery", "restaurant", meal_type="Breakfast", cuisine="Cafe")
        vector_client = FakeVectorClient({
            filter_key(cuisine("Cafe")): [bakery, record("Karak House", "restaurant", cuisine="Cafe")],
            filter_key(RESTAURANT_ONLY): [record("Steak Place", "restaurant"), record("Other Diner", "restaurant")],
            filter_key(BREAKFAST): [record("Fallback Breakfast", "restaurant", meal_type="Breakfast")],
        })
        resolver = CandidateResolver(self.embedder, vector_client)

        resolved = await resolver.resolve_day_plan("breakfast", [], ["Cafe"])

        assert cuisine("Cafe") in vector_client.filters_called()
        assert RESTAURANT_ONLY in vector_client.filters_called()
        names = resolved.names
        assert names.index("Morning Bakery") < names.index("Fallback Breakfast")
        assert names[:2] == ["Morning Bakery", "Karak House"]

    @pytest.mark.asyncio
    async def test_food_labels_are_mapped_to_index_values(self):
        vector_client = FakeVectorClient()
        resolver = CandidateResolver(self.embedder, vector_client)

        await resolver.resolve_day_plan(None, [], ["South Asian", "Fast Food"])

        filters = vector_client.filters_called()
        assert cuisine("SouthAsian") in filters
        assert cuisine("Fastfood") in filters
        cuisine_specs = [spec for spec in vector_client.calls if spec.label.startswith("cuisine:")]
        assert all(spec.top_k == 10 for spec in cuisine_specs)

    @pytest.mark.asyncio
    async def test_places_outage_leaves_no_place_records(self):
        vector_client = FakeVectorClient({
            filter_key(PLACE_FILTER): unavailable(),
            filter_key(CLIENT_FILTER): unavailable(),
            filter_key(RESTAURANT_ONLY): [record("Saffron", "restaurant"), record("Karak House", "restaurant")],
            filter_key(EVENT_FILTER): [record("Jazz Night", "event")],
        })
        resolver = CandidateResolver(self.embedder, vector_client)

        resolved = await resolver.resolve_day_plan("a fun day", [], [])

        assert not [c for c in resolved.candidates if c.kind == RecordKind.PLACE]
        assert resolved.category_counts["places"] == 0
        assert "Saffron" in resolved.names
        assert "Jazz Night" in resolved.names
        assert not resolved.used_static_fallback

    @pytest.mark.asyncio
    async def test_breakfast_falls_back_to_any_restaurant(self):
        vector_client = FakeVectorClient({
            filter_key(BREAKFAST): [],
            filter_key(RESTAURANT_ONLY): [record("Saffron", "restaurant")],
        })
        resolver = CandidateResolver(self.embedder, vector_client)

        resolved = await resolver.resolve_day_plan("food", [], [])

        breakfast_labels = [spec.label for spec in vector_client.calls if spec.label.startswith("breakfast")]
        assert breakfast_labels == ["breakfast", "breakfast-any"]
        # the same restaurant was already merged under restaurants
        assert resolved.category_counts["breakfast"] == 0

    @pytest.mark.asyncio
    async def test_static_fallback_when_everything_is_empty(self):
        resolver = CandidateResolver(self.embedder, FakeVectorClient())

        resolved = await resolver.resolve_day_plan(None, [], [])

        assert resolved.used_static_fallback
        assert len(resolved.candidates) == 8
        assert resolved.names[0] == "Bahrain National Museum"
        assert self.embedder.calls[0][0] == DEFAULT_QUERY_TEXT

    @pytest.mark.asyncio
    async def test_embedding_failure_raises(self):
        resolver = CandidateResolver(FakeEmbedder(error=embedding_failure()), FakeVectorClient())

        with pytest.raises(EmbeddingFailure):
            await resolver.resolve_day_plan("history", [], [])


class TestMatchClients:
    @pytest.mark.asyncio
    async def test_client_filter_and_clamped_top_k(self):
        matches = [ScoredMatch(id="c1", score=0.9, metadata={"business_name": "Saffron"})]
        vector_client = FakeVectorClient(matches=matches, max_top_k=5)
        embedder = FakeEmbedder()
        resolver = CandidateResolver(embedder, vector_client, namespace="prod")

        result = await resolver.match_clients(["Cultural"], ["Seafood"], top_k=10)

        assert result == matches
        assert vector_client.query_calls == [{"top_k": 5, "filters": CLIENT_FILTER, "namespace": "prod"}]
        assert embedder.calls[0][0] == "Cultural. Seafood"


class TestPlaceLookup:
    @pytest.mark.asyncio
    async def test_preferences_become_filters(self):
        vector_client = FakeVectorClient({filter_key({"vibe": "Relaxed"}): places(3)})
        resolver = CandidateResolver(FakeEmbedder(), vector_client)

        resolved = await resolver.resolve_place_lookup("beach", top_k=5, preferences=PlacePreferences(vibe="Relaxed"))

        assert resolved.names == ["Place 0", "Place 1", "Place 2"]
        assert not resolved.used_static_fallback

    @pytest.mark.asyncio
    async def test_failure_uses_full_static_list(self):
        vector_client = FakeVectorClient({filter_key(()): unavailable()})
        resolver = CandidateResolver(FakeEmbedder(), vector_client)

        resolved = await resolver.resolve_place_lookup("beach", top_k=5)

        assert resolved.used_static_fallback
        assert len(resolved.candidates) == 8
        assert "places" in resolved.errors


class TestNearby:
    def setup_method(self):
        self.vector_client = FakeVectorClient({
            filter_key(PLACE_FILTER): [
                record("Bahrain Fort", lat=26.2335, lng=50.5205),
                record("Tree of Life", lat=25.9942, lng=50.5833),
                record("No Coordinates"),
            ],
            filter_key(RESTAURANT_FILTER): [record("Souq Cafe", "restaurant", lat=26.2361, lng=50.5756)],
            filter_key(EVENT_FILTER): [record("Bahrain Fort", "event", id="dup", lat=26.2335, lng=50.5205)],
        })
        self.resolver = CandidateResolver(FakeEmbedder(), self.vector_client)

    @pytest.mark.asyncio
    async def test_all_mode_ranks_by_distance(self):
        pois = await self.resolver.resolve_nearby(26.2285, 50.5860, mode=NearbyMode.ALL, radius_km=10, limit=20)

        assert [p.candidate.name for p in pois] == ["Souq Cafe", "Bahrain Fort"]
        assert len(self.vector_client.calls) == 3

    @pytest.mark.asyncio
    async def test_landmarks_mode_queries_places_only(self):
        pois = await self.resolver.resolve_nearby(26.2285, 50.5860, mode="landmarks", radius_km=50, limit=20)

        assert self.vector_client.filters_called() == [PLACE_FILTER]
        assert [p.candidate.name for p in pois] == ["Bahrain Fort", "Tree of Life"]

    @pytest.mark.asyncio
    async def test_food_mode_queries_restaurants_and_events(self):
        await self.resolver.resolve_nearby(26.2285, 50.5860, mode=NearbyMode.FOOD)

        assert self.vector_client.filters_called() == [RESTAURANT_FILTER, EVENT_FILTER]
