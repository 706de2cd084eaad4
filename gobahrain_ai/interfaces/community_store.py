"""
Community Store Interface
Read side of the relational backend: community reviews from Supabase
"""

import asyncio
from typing import Any, Dict, List, Optional

from loguru import logger
from supabase import Client, PostgrestAPIError, create_client

from ..config import Settings
from ..schemas.ai_schemas import CommunityReview
from ..utils.ai_helpers import to_float
from ..utils.constants import COMMUNITY_REVIEWS_LIMIT
from ..utils.exceptions import DataGatewayFailure


def row_to_review(row: Dict[str, Any]) -> Optional[CommunityReview]:
    """
    Map a `community` table row to CommunityReview

    Returns:
        CommunityReview, or None when the row has no id
    """
    review_id = row.get("community_uuid") or row.get("id")
    if not review_id:
        return None

    upvotes = row.get("num_of_upvote")
    if upvotes is None:
        upvotes = row.get("likes")

    return CommunityReview(
        id=str(review_id),
        review_text=row.get("review_text") or "",
        rating=to_float(row.get("rating")),
        place=row.get("badge") or None,
        hashtags=row.get("hashtags") or None,
        upvotes=int(to_float(upvotes) or 0),
        created_at=row.get("created_at"),
    )


class CommunityStore:
    """
    Supabase client for the `community` table

    The supabase client is synchronous; reads run in a worker thread.

    Usage:
        store = CommunityStore(settings)
        reviews = await store.fetch_recent_reviews()
    """

    TABLE = "community"

    def __init__(self, settings: Settings, client: Optional[Client] = None):
        self.settings = settings
        self._client = client

    def _get_client(self) -> Client:
        if self._client is None:
            self._client = create_client(self.settings.SUPABASE_URL, self.settings.SUPABASE_KEY)
        return self._client

    def _select_recent(self, limit: int) -> Any:
        return (
            self._get_client()
            .table(self.TABLE)
            .select("*")
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )

    async def fetch_recent_reviews(self, limit: int = COMMUNITY_REVIEWS_LIMIT) -> List[CommunityReview]:
        """
        Most recent community reviews, newest first

        Raises:
            DataGatewayFailure: when Supabase is not configured or answers with an error
        """
        if not self.settings.supabase_configured:
            raise DataGatewayFailure("SUPABASE_URL and SUPABASE_KEY must be configured")

        try:
            response = await asyncio.to_thread(self._select_recent, limit)
        except PostgrestAPIError as e:
            message = e.message or f"Supabase error ({e.code})"
            logger.error(f"Supabase error {e.code}: {message}")
            raise DataGatewayFailure(message) from e
        except Exception as e:
            logger.error(f"Supabase request failed: {e}")
            raise DataGatewayFailure(f"Supabase request failed: {e}") from e

        rows = getattr(response, "data", None)
        if not isinstance(rows, list):
            raise DataGatewayFailure("Invalid Supabase response: expected a list of rows")

        reviews = [r for r in (row_to_review(row) for row in rows if isinstance(row, dict)) if r]
        logger.info(f"Fetched {len(reviews)} community reviews")
        return reviews
