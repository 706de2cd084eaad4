"""
Go Bahrain AI Service - FastAPI Application

Retrieval-augmented recommendations:
embed -> vector search -> recipe merge/fallback -> prompt -> LLM -> parse
"""

import sys
import time
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from . import __version__
from .agents.candidate_resolver import CandidateResolver
from .agents.planner_agent import PlannerAgent
from .api.ai_plan import router as ai_plan_router
from .api.chat import router as chat_router
from .api.community import router as community_router
from .api.dependencies import error_response
from .api.places import router as places_router
from .config import Settings, get_settings
from .interfaces.community_store import CommunityStore
from .interfaces.vector_store import VectorSearchClient
from .llm.embeddings import EmbeddingService
from .llm.generator import GenerationClient
from .llm.openai_client import build_openai_client


def configure_logging(level: str = "INFO") -> None:
    """Single stderr sink at the configured level"""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
               "<cyan>{name}</cyan> - <level>{message}</level>",
    )


def build_agent(settings: Settings, http_client: Optional[httpx.AsyncClient] = None) -> PlannerAgent:
    """Wire clients, resolver and agent; both OpenAI services share one SDK client"""
    openai_client = build_openai_client(settings, http_client)
    embedder = EmbeddingService(settings, openai_client)
    vector_client = VectorSearchClient(settings)
    generator = GenerationClient(settings, openai_client)
    community_store = CommunityStore(settings) if settings.supabase_configured else None

    resolver = CandidateResolver(embedder, vector_client, namespace=settings.PINECONE_NAMESPACE)
    return PlannerAgent(
        resolver,
        generator,
        community_store=community_store,
        review_model=settings.REVIEW_MODEL,
        strict_grounding=settings.STRICT_PLAN_GROUNDING,
    )


def create_app(settings: Optional[Settings] = None, agent: Optional[PlannerAgent] = None) -> FastAPI:
    """
    Build the FastAPI application

    Args:
        settings: Configuration (default: from the process environment)
        agent: Pre-built agent; when given, the lifespan builds nothing

    Returns:
        FastAPI app
    """
    settings = settings or get_settings()

    # ============================================
    # Application Lifespan
    # ============================================

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler"""
        logger.info("=" * 50)
        logger.info("Starting Go Bahrain AI Service")
        logger.info("=" * 50)
        logger.info(f"Environment: {settings.API_ENV}")

        http_client = None
        if app.state.agent is None:
            settings.validate()
            http_client = httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS)
            app.state.agent = build_agent(settings, http_client)
            logger.info(f"  Embedding model: {settings.EMBEDDING_MODEL}")
            logger.info(f"  Chat model: {settings.CHAT_MODEL}")
            logger.info(f"  Vector index: {settings.PINECONE_HOST}")
            logger.info(f"  Community store: {'ready' if settings.supabase_configured else 'not configured'}")

        try:
            yield
        finally:
            if http_client is not None:
                await http_client.aclose()
            logger.info("AI Service shutdown complete")

    # ============================================
    # FastAPI Application
    # ============================================

    app = FastAPI(
        title="Go Bahrain AI Service",
        description="Day plans, chat and place recommendations grounded in the Go Bahrain place index.",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.agent = agent

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def record_start_time(request: Request, call_next):
        request.state.start_time = time.perf_counter()
        return await call_next(request)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        first = exc.errors()[0] if exc.errors() else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg', 'invalid request')}" if location else "invalid request"
        return error_response(400, message, getattr(request.state, "start_time", time.perf_counter()))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.url.path}: {exc}")
        return error_response(500, "Internal server error", getattr(request.state, "start_time", time.perf_counter()))

    app.include_router(ai_plan_router)
    app.include_router(chat_router)
    app.include_router(places_router)
    app.include_router(community_router)

    # ============================================
    # REST Endpoints
    # ============================================

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "service": "Go Bahrain AI Service",
            "version": __version__,
            "status": "running",
            "docs": "/docs",
            "endpoints": [
                "/health",
                "/api/ai-plan",
                "/api/ai-plan/day",
                "/api/ai-plan/match-clients",
                "/api/chat",
                "/api/places",
                "/api/places/nearby",
                "/api/community/search",
            ],
        }

    @app.get("/health")
    async def health_check():
        return {"status": "ok"}

    return app


# ============================================
# Main
# ============================================

if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    configure_logging(_settings.LOG_LEVEL)
    uvicorn.run(
        create_app(_settings),
        host=_settings.API_HOST,
        port=_settings.API_PORT,
    )
