"""
Shared API helpers
Agent lookup from application state and the {error, latency_ms} error body
"""

import time

from fastapi import Request
from fastapi.responses import JSONResponse
from loguru import logger

from ..agents.planner_agent import PlannerAgent
from ..schemas.ai_schemas import ErrorResponse
from ..utils.exceptions import GoBahrainError


def get_agent(request: Request) -> PlannerAgent:
    """PlannerAgent built by the application lifespan (or injected by tests)"""
    return request.app.state.agent


def elapsed_ms(start_time: float) -> int:
    return int(round((time.perf_counter() - start_time) * 1000))


def error_response(status_code: int, message: str, start_time: float) -> JSONResponse:
    body = ErrorResponse(error=message, latency_ms=elapsed_ms(start_time))
    return JSONResponse(status_code=status_code, content=body.model_dump())


def failure_response(route: str, error: Exception, start_time: float) -> JSONResponse:
    """
    500 body for a failed request

    Pipeline errors keep their message; anything else is reported generically
    and logged with its traceback.
    """
    if isinstance(error, GoBahrainError):
        logger.error(f"[{route}] {type(error).__name__}: {error}")
        return error_response(500, error.message, start_time)

    logger.exception(f"[{route}] unexpected error: {error}")
    return error_response(500, "Internal server error", start_time)
