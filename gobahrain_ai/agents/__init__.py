# agents/__init__.py
"""
AI Agents Package

Contains the pipeline agents:
- CandidateResolver: retrieval recipes (embed, query, fallback, merge)
- PlannerAgent: user-facing day plans, chat and community search
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .candidate_resolver import CandidateResolver, static_fallback_candidates
    from .planner_agent import PlannerAgent, PlanTextResult, DayPlanResult, ChatResult

__all__ = [
    "CandidateResolver",
    "static_fallback_candidates",
    "PlannerAgent",
    "PlanTextResult",
    "DayPlanResult",
    "ChatResult"
]
