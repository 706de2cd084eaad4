"""
AI Plan API Endpoints
Day plans and client matching
"""

import time

from fastapi import APIRouter, Depends
from loguru import logger

from ..agents.planner_agent import PlannerAgent
from ..schemas.ai_schemas import (
    AIPlanRequest,
    AIPlanResponse,
    DayPlanRequest,
    DayPlanResponse,
    ErrorResponse,
    MatchClientsRequest,
    MatchClientsResponse,
)
from .dependencies import elapsed_ms, error_response, failure_response, get_agent


router = APIRouter(prefix="/api/ai-plan", tags=["AI Plan"])

ERROR_RESPONSES = {400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}


# ============================================
# Plain-text Plan
# ============================================

@router.post("", response_model=AIPlanResponse, responses=ERROR_RESPONSES)
async def create_plan(request: AIPlanRequest, agent: PlannerAgent = Depends(get_agent)):
    """
    Full plan flow: embed -> place lookup -> plain-text day plan

    Example:
        POST /api/ai-plan
        {"message": "A relaxed day with history and seafood", "preferences": {"vibe": "Relaxed"}}

    Returns:
        AIPlanResponse: used_places_count is approximate (case-insensitive name substring matches)
    """
    start_time = time.perf_counter()
    message = (request.message or "").strip()
    if not message:
        return error_response(400, "message is required", start_time)

    try:
        result = await agent.plan_text(message, preferences=request.preferences)
    except Exception as e:
        return failure_response("ai-plan", e, start_time)

    latency = elapsed_ms(start_time)
    logger.info(f"[ai-plan] done in {latency}ms ({result.timings_ms})")
    return AIPlanResponse(
        day_plan=result.day_plan,
        used_places_count=result.used_places_count,
        latency_ms=latency,
    )


# ============================================
# Structured Plan
# ============================================

@router.post("/day", response_model=DayPlanResponse, responses=ERROR_RESPONSES)
async def create_day_plan(request: DayPlanRequest, agent: PlannerAgent = Depends(get_agent)):
    """
    Structured day plan from activity and food preferences

    Example:
        POST /api/ai-plan/day
        {"activities": ["Cultural"], "food": ["Cafe", "Seafood"]}
    """
    start_time = time.perf_counter()

    try:
        result = await agent.plan_day(
            message=request.message,
            activities=request.activities,
            food=request.food,
            strict=request.strict,
        )
    except Exception as e:
        return failure_response("day-plan", e, start_time)

    return DayPlanResponse(
        plan=result.plan,
        candidates_count=len(result.resolved.candidates),
        ungrounded_spots=result.ungrounded_spots,
        used_static_fallback=result.resolved.used_static_fallback,
        latency_ms=elapsed_ms(start_time),
    )


# ============================================
# Client Matching
# ============================================

@router.post("/match-clients", response_model=MatchClientsResponse, responses=ERROR_RESPONSES)
async def match_clients(request: MatchClientsRequest, agent: PlannerAgent = Depends(get_agent)):
    """
    Client profiles nearest to the user's preferences

    Example:
        POST /api/ai-plan/match-clients
        {"preferences": ["Cultural"], "foodCategories": ["Seafood"]}
    """
    start_time = time.perf_counter()

    try:
        clients = await agent.match_clients(request.preferences, request.food_categories)
    except Exception as e:
        return failure_response("match-clients", e, start_time)

    return MatchClientsResponse(clients=clients, latency_ms=elapsed_ms(start_time))
