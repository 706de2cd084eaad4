"""
Community API Endpoint
AI search over community reviews
"""

import time

from fastapi import APIRouter, Depends

from ..agents.planner_agent import PlannerAgent
from ..schemas.ai_schemas import CommunitySearchRequest, CommunitySearchResponse, ErrorResponse
from .dependencies import elapsed_ms, failure_response, get_agent


router = APIRouter(prefix="/api/community", tags=["Community"])


@router.post("/search", response_model=CommunitySearchResponse, responses={500: {"model": ErrorResponse}})
async def search_community(request: CommunitySearchRequest, agent: PlannerAgent = Depends(get_agent)):
    """
    Reviews matching the search, each with a one-line suggestion

    Example:
        POST /api/community/search
        {"query": "food"}
    """
    start_time = time.perf_counter()

    try:
        results = await agent.search_community(request.query)
    except Exception as e:
        return failure_response("community", e, start_time)

    return CommunitySearchResponse(results=results, latency_ms=elapsed_ms(start_time))
