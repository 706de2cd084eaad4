"""
Tests for the community store
"""
from types import SimpleNamespace

import pytest
from supabase import PostgrestAPIError

from gobahrain_ai.interfaces.community_store import CommunityStore, row_to_review
from gobahrain_ai.utils.exceptions import DataGatewayFailure
from tests.fakes import make_settings


ROWS = [
    {
        "community_uuid": "c-1",
        "review_text": "Best karak in Muharraq",
        "rating": "4.5",
        "badge": "Karak House",
        "hashtags": "#karak #muharraq",
        "num_of_upvote": 12,
        "created_at": "2025-11-02T10:00:00Z",
    },
    {"id": 7, "review_text": "Nice", "rating": None, "likes": 3},
    {"review_text": "row without id"},
]


class FakeSupabase:
    """Chainable stand-in for the supabase query builder; records each call"""

    def __init__(self, data=None, error=None):
        self.data = data
        self.error = error
        self.calls = []

    def table(self, name):
        self.calls.append(("table", name))
        return self

    def select(self, columns):
        self.calls.append(("select", columns))
        return self

    def order(self, column, desc=False):
        self.calls.append(("order", column, desc))
        return self

    def limit(self, size):
        self.calls.append(("limit", size))
        return self

    def execute(self):
        self.calls.append(("execute",))
        if self.error is not None:
            raise self.error
        return SimpleNamespace(data=self.data)


def build_store(client, **overrides):
    return CommunityStore(make_settings(**overrides), client)


class TestRowToReview:
    def test_full_row(self):
        review = row_to_review(ROWS[0])

        assert review.id == "c-1"
        assert review.rating == 4.5
        assert review.place == "Karak House"
        assert review.upvotes == 12

    def test_fallback_columns(self):
        review = row_to_review(ROWS[1])

        assert review.id == "7"
        assert review.rating is None
        assert review.upvotes == 3

    def test_row_without_id(self):
        assert row_to_review(ROWS[2]) is None


class TestCommunityStore:
    """Supabase reads against a fake client"""

    @pytest.mark.asyncio
    async def test_fetch_recent_reviews(self):
        client = FakeSupabase(data=ROWS)

        reviews = await build_store(client).fetch_recent_reviews(limit=40)

        assert [r.id for r in reviews] == ["c-1", "7"]
        assert client.calls == [
            ("table", "community"),
            ("select", "*"),
            ("order", "created_at", True),
            ("limit", 40),
            ("execute",),
        ]

    @pytest.mark.asyncio
    async def test_api_error_carries_message(self):
        error = PostgrestAPIError({"message": "Invalid API key", "code": "PGRST301"})

        with pytest.raises(DataGatewayFailure) as exc_info:
            await build_store(FakeSupabase(error=error)).fetch_recent_reviews()

        assert exc_info.value.message == "Invalid API key"

    @pytest.mark.asyncio
    async def test_connection_error_becomes_gateway_failure(self):
        with pytest.raises(DataGatewayFailure) as exc_info:
            await build_store(FakeSupabase(error=ConnectionError("refused"))).fetch_recent_reviews()

        assert "refused" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_non_list_payload(self):
        with pytest.raises(DataGatewayFailure):
            await build_store(FakeSupabase(data={"rows": []})).fetch_recent_reviews()

    @pytest.mark.asyncio
    async def test_not_configured_makes_no_request(self):
        client = FakeSupabase(data=[])

        with pytest.raises(DataGatewayFailure):
            await build_store(client, SUPABASE_KEY="").fetch_recent_reviews()

        assert client.calls == []
