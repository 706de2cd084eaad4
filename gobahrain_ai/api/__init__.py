# api/__init__.py
"""
API Endpoints Package

Contains all FastAPI routers for the AI service:
- ai_plan: Day plans and client matching
- chat: Conversational assistant
- places: Place listing and nearby points of interest
- community: Community review search
"""

from typing import TYPE_CHECKING

# Lazy imports to avoid circular dependencies
if TYPE_CHECKING:
    from .ai_plan import router as ai_plan_router
    from .chat import router as chat_router
    from .places import router as places_router
    from .community import router as community_router

__all__ = [
    "ai_plan_router",
    "chat_router",
    "places_router",
    "community_router"
]
