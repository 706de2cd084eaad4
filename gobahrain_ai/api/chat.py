"""
Chat API Endpoint
Conversational assistant with an allowed-places list
"""

import time

from fastapi import APIRouter, Depends

from ..agents.planner_agent import PlannerAgent
from ..schemas.ai_schemas import ChatRequest, ChatResponse, ErrorResponse
from .dependencies import elapsed_ms, error_response, failure_response, get_agent


router = APIRouter(prefix="/api/chat", tags=["Chat"])


@router.post("", response_model=ChatResponse, responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}})
async def chat(request: ChatRequest, agent: PlannerAgent = Depends(get_agent)):
    """
    Answer one chat message

    Example:
        POST /api/chat
        {"message": "Where can I get good karak?", "history": [], "preferences": ["Cafe"]}
    """
    start_time = time.perf_counter()
    message = (request.message or "").strip()
    if not message:
        return error_response(400, "message is required", start_time)

    try:
        result = await agent.chat(message, history=request.history, preferences=request.preferences)
    except Exception as e:
        return failure_response("chat", e, start_time)

    return ChatResponse(
        reply=result.reply.reply,
        actions=result.reply.actions,
        allowed_places_count=len(result.resolved.candidates),
        latency_ms=elapsed_ms(start_time),
    )
