"""
Places API Endpoints
Place listing and nearby points of interest for the AR explorer
"""

import time
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..agents.planner_agent import PlannerAgent
from ..schemas.ai_schemas import ErrorResponse, NearbyRequest, NearbyResponse, PlacePreferences, PlacesResponse
from ..utils.constants import PLACE_LOOKUP_LIST_TOP_K
from .dependencies import elapsed_ms, failure_response, get_agent


router = APIRouter(prefix="/api/places", tags=["Places"])

ERROR_RESPONSES = {500: {"model": ErrorResponse}}


@router.get("", response_model=PlacesResponse, responses=ERROR_RESPONSES)
async def list_places(
    q: Optional[str] = None,
    top_k: int = Query(PLACE_LOOKUP_LIST_TOP_K, ge=1, le=100),
    vibe: Optional[str] = None,
    category: Optional[str] = None,
    price_range: Optional[str] = None,
    agent: PlannerAgent = Depends(get_agent),
):
    """
    Place listing; falls back to the static place list when search fails

    Example:
        GET /api/places?q=heritage&category=History
    """
    start_time = time.perf_counter()
    preferences = PlacePreferences(vibe=vibe, category=category, price_range=price_range)

    try:
        resolved = await agent.list_places(q, top_k=top_k, preferences=preferences)
    except Exception as e:
        return failure_response("places", e, start_time)

    return PlacesResponse(
        places=resolved.candidates,
        used_static_fallback=resolved.used_static_fallback,
        latency_ms=elapsed_ms(start_time),
    )


@router.post("/nearby", response_model=NearbyResponse, responses=ERROR_RESPONSES)
async def nearby(request: NearbyRequest, agent: PlannerAgent = Depends(get_agent)):
    """
    Points of interest around the viewer, nearest first

    Example:
        POST /api/places/nearby
        {"lat": 26.2285, "lng": 50.586, "mode": "landmarks", "radius_km": 5}
    """
    start_time = time.perf_counter()

    try:
        pois = await agent.nearby(
            request.lat,
            request.lng,
            mode=request.mode,
            radius_km=request.radius_km,
            limit=request.limit,
        )
    except Exception as e:
        return failure_response("nearby", e, start_time)

    return NearbyResponse(pois=pois, latency_ms=elapsed_ms(start_time))
