import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI

from app.config import get_settings
from app.api.routes import messages, channels, webhooks
from app.ai_core.scoring import LLMSentimentScorer, SentimentScorer
from app.integrations.discord.client import DiscordPermissionChecker, PermissionChecker
from app.models.message import Platform
from app.services.aggregate_store import AggregateStore, InMemoryAggregateStore
from app.services.ingestion_worker import PullSource, WorkerManager
from app.services.intake_filters import IntakeFilters
from app.services.pipeline import IngestionPipeline
from app.services.query_service import QueryService

settings = get_settings()

# Configure application logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

# Set log level for app modules
logger = logging.getLogger("app")
logger.setLevel(logging.DEBUG if settings.debug else logging.INFO)


def create_app(
    store: Optional[AggregateStore] = None,
    scorer: Optional[SentimentScorer] = None,
    permission_checker: Optional[PermissionChecker] = None,
    pull_sources: Optional[Dict[Platform, PullSource]] = None,
    filters: Optional[IntakeFilters] = None,
    worker_options: Optional[Dict[str, Any]] = None,
) -> FastAPI:
    """
    Build the API application.

    Collaborators not passed in are created from settings at startup, so
    importing this module never contacts the sentiment model.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app_store = store or InMemoryAggregateStore()
        app_scorer = scorer or LLMSentimentScorer()
        checker = permission_checker or DiscordPermissionChecker()

        app_filters = filters or IntakeFilters()

        pipeline = IngestionPipeline(app_store, app_scorer, filters=app_filters)
        workers = WorkerManager(
            pipeline, pull_sources=pull_sources, **(worker_options or {})
        )

        app.state.store = app_store
        app.state.pipeline = pipeline
        app.state.filters = app_filters
        app.state.query_service = QueryService(app_store, permission_checker=checker)
        app.state.workers = workers

        await workers.start_all()
        logger.info(f"{settings.app_name} started (reference timezone {app_store.tz})")
        try:
            yield
        finally:
            await workers.stop_all()
            logger.info(f"{settings.app_name} stopped")

    app = FastAPI(
        title=settings.app_name,
        description="Chat sentiment ingestion and aggregation service",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Include routers
    app.include_router(messages.router, prefix="/api", tags=["Dashboard"])
    app.include_router(channels.router, prefix="/api", tags=["Channels"])
    app.include_router(webhooks.router, prefix="/api", tags=["Webhooks"])

    @app.get("/")
    async def root():
        return {
            "message": f"Welcome to {settings.app_name} - chat sentiment dashboard API",
            "version": "0.1.0",
            "endpoints": {
                "recent_messages": "/api/recent-messages",
                "sentiment": "/api/sentiment",
                "messages": "/api/messages",
                "distribution": "/api/distribution",
                "channels": "/api/channels",
                "stats": "/api/stats",
                "webhooks": "/api/webhook/{platform}",
                "health": "/health",
                "docs": "/docs",
            },
        }

    @app.get("/health")
    async def health_check():
        workers = getattr(app.state, "workers", None)
        return {
            "status": "healthy",
            "service": settings.app_name,
            "workers": workers.health_status() if workers else {},
        }

    return app


app = create_app()
