"""
Tests for the HTTP surface
"""
import json

from fastapi.testclient import TestClient

from gobahrain_ai.agents.candidate_resolver import EVENT_FILTER, PLACE_FILTER, RESTAURANT_FILTER, CandidateResolver
from gobahrain_ai.agents.planner_agent import PlannerAgent
from gobahrain_ai.main import create_app
from gobahrain_ai.schemas.ai_schemas import CommunityReview, ScoredMatch
from tests.fakes import (
    FakeCommunityStore,
    FakeEmbedder,
    FakeGenerator,
    FakeVectorClient,
    embedding_failure,
    filter_key,
    make_settings,
    record,
)


def build_client(responses=None, replies=("ok",), embedder=None, matches=None, community_store=None):
    vector_client = FakeVectorClient(responses or {}, matches=matches)
    generator = FakeGenerator(replies)
    resolver = CandidateResolver(embedder or FakeEmbedder(), vector_client)
    agent = PlannerAgent(resolver, generator, community_store=community_store)
    app = create_app(settings=make_settings(), agent=agent)
    return TestClient(app), vector_client, generator


class TestServiceEndpoints:
    def test_health(self):
        client, _, _ = build_client()

        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_root_lists_endpoints(self):
        client, _, _ = build_client()

        body = client.get("/").json()

        assert "/api/ai-plan/day" in body["endpoints"]


class TestAIPlanEndpoints:
    """POST /api/ai-plan and friends"""

    def test_missing_message_is_400(self):
        client, _, generator = build_client()

        response = client.post("/api/ai-plan", json={"message": "   "})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "message is required"
        assert isinstance(body["latency_ms"], int)
        assert generator.calls == []

    def test_plan_text(self):
        client, _, _ = build_client(
            responses={filter_key(()): [record("Bahrain Fort")]},
            replies=["Morning:\n- Bahrain Fort"],
        )

        response = client.post("/api/ai-plan", json={"message": "history"})

        assert response.status_code == 200
        body = response.json()
        assert body["day_plan"] == "Morning:\n- Bahrain Fort"
        assert body["used_places_count"] == 1

    def test_provider_failure_is_500_with_message(self):
        client, _, _ = build_client(embedder=FakeEmbedder(error=embedding_failure("Incorrect API key provided")))

        response = client.post("/api/ai-plan", json={"message": "history"})

        assert response.status_code == 500
        assert response.json()["error"] == "Incorrect API key provided"

    def test_day_plan(self):
        plan = [
            {"spot": "Saffron", "time": "Morning", "type": "restaurant", "lat": "", "lng": "", "reason": "Breakfast"},
            {"spot": "Jazz Night", "time": "Evening", "type": "event", "lat": 26.2, "lng": 50.5, "reason": "Music"},
        ]
        client, _, _ = build_client(
            responses={
                filter_key({"client_type": "restaurant"}): [record("Saffron", "restaurant")],
                filter_key(EVENT_FILTER): [record("Jazz Night", "event", start_time="19:00")],
            },
            replies=[json.dumps(plan)],
        )

        response = client.post("/api/ai-plan/day", json={"activities": ["Music"], "food": []})

        assert response.status_code == 200
        body = response.json()
        assert [item["spot"] for item in body["plan"]] == ["Saffron", "Jazz Night"]
        assert body["plan"][0]["lat"] is None
        assert body["candidates_count"] == 2
        assert body["ungrounded_spots"] == []
        assert body["used_static_fallback"] is False

    def test_day_plan_parse_failure_is_500(self):
        client, _, _ = build_client(replies=["no plan today"])

        response = client.post("/api/ai-plan/day", json={"activities": ["Music"]})

        assert response.status_code == 500
        assert "error" in response.json()

    def test_match_clients_accepts_camel_case(self):
        matches = [ScoredMatch(id="c1", score=0.91, metadata={"business_name": "Saffron"})]
        client, vector_client, _ = build_client(matches=matches)

        response = client.post(
            "/api/ai-plan/match-clients",
            json={"preferences": ["Cultural"], "foodCategories": ["Seafood"]},
        )

        assert response.status_code == 200
        assert response.json()["clients"][0]["id"] == "c1"
        assert vector_client.query_calls[0]["filters"] == {"record_type": "client"}


class TestChatEndpoint:
    def test_missing_message_is_400(self):
        client, _, _ = build_client()

        response = client.post("/api/chat", json={"history": []})

        assert response.status_code == 400
        assert response.json()["error"] == "message is required"

    def test_chat_reply(self):
        reply = json.dumps({"reply": "Try the souq!", "actions": [{"type": "show_posts", "query": "souq"}]})
        client, _, _ = build_client(
            responses={
                filter_key(PLACE_FILTER): [record("Manama Souq")],
                filter_key(RESTAURANT_FILTER): [record("Saffron", "restaurant")],
            },
            replies=[reply],
        )

        response = client.post("/api/chat", json={
            "message": "what should I do?",
            "history": [{"role": "user", "text": "hi"}],
            "preferences": ["Shopping"],
        })

        assert response.status_code == 200
        body = response.json()
        assert body["reply"] == "Try the souq!"
        assert body["actions"] == [{"type": "show_posts", "query": "souq", "place": None}]
        assert body["allowed_places_count"] == 2


class TestPlacesEndpoints:
    def test_list_places_falls_back_to_static_list(self):
        client, _, _ = build_client()

        response = client.get("/api/places", params={"q": "heritage", "top_k": 5})

        assert response.status_code == 200
        body = response.json()
        assert body["used_static_fallback"] is True
        assert len(body["places"]) == 8

    def test_list_places_filters(self):
        client, vector_client, _ = build_client(
            responses={filter_key({"category": "History"}): [record("Bahrain Fort")]},
        )

        body = client.get("/api/places", params={"category": "History"}).json()

        assert [p["name"] for p in body["places"]] == ["Bahrain Fort"]
        assert vector_client.filters_called() == [{"category": "History"}]

    def test_nearby(self):
        client, _, _ = build_client(responses={
            filter_key(PLACE_FILTER): [
                record("Bahrain Fort", lat=26.2335, lng=50.5205),
                record("Manama Souq", lat=26.2361, lng=50.5756),
            ],
        })

        response = client.post("/api/places/nearby", json={"lat": 26.2285, "lng": 50.586, "mode": "landmarks"})

        assert response.status_code == 200
        pois = response.json()["pois"]
        assert [p["candidate"]["name"] for p in pois] == ["Manama Souq", "Bahrain Fort"]
        assert pois[0]["distance_label"].endswith("km")

    def test_nearby_invalid_latitude_is_400(self):
        client, _, _ = build_client()

        response = client.post("/api/places/nearby", json={"lat": 120, "lng": 50.5})

        assert response.status_code == 400
        assert "lat" in response.json()["error"]


class TestCommunityEndpoint:
    def test_search(self):
        reviews = [CommunityReview(id="r1", review_text="Great karak", rating=4.5)]
        client, _, _ = build_client(
            replies=[json.dumps([{"id": "r1", "suggestion": "Khalid says: try it!"}])],
            community_store=FakeCommunityStore(reviews),
        )

        response = client.post("/api/community/search", json={"query": "karak"})

        assert response.status_code == 200
        results = response.json()["results"]
        assert results[0]["ai_suggestion"] == "Khalid says: try it!"

    def test_store_not_configured_is_500(self):
        client, _, _ = build_client()

        response = client.post("/api/community/search", json={"query": "karak"})

        assert response.status_code == 500
        assert response.json()["error"] == "Community store is not configured"
