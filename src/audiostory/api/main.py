"""FastAPI application entry point.

Main application configuration, middleware, and startup lifecycle. Every
client the pipeline uses is built once in ``lifespan`` and handed to the
components that need it; nothing is initialized on first use.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator
import logging

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from audiostory.core.config import Settings, get_settings
from audiostory.models.database import close_db, create_tables, init_db
from audiostory.services.pipeline import StoryPipeline
from audiostory.services.store import StoryStore
from audiostory.tools import ArtifactPublisher, NarrationSynthesizer, NarrativeGenerator

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(settings: Settings) -> None:
    """Configure root logging from settings."""
    logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler.

    Startup:
    - Initialize database connection pool and schema
    - Create the shared HTTP client, stage adapters and pipeline

    Shutdown:
    - Let in-flight story runs finish (bounded by the grace period)
    - Close the HTTP client and database connections
    """
    settings: Settings = app.state.settings
    configure_logging(settings)

    # Initialize database
    logger.info("Initializing database connection...")
    engine_kwargs = {}
    if not settings.is_sqlite:
        engine_kwargs = {
            "pool_size": settings.database_pool_size,
            "max_overflow": settings.database_max_overflow,
        }
    session_factory = init_db(settings.async_database_url, **engine_kwargs)
    await create_tables()
    logger.info("Database initialized")

    http_client = httpx.AsyncClient(timeout=settings.remote_timeout_seconds)
    store = StoryStore(session_factory)
    publisher = ArtifactPublisher(settings)
    pipeline = StoryPipeline(
        store=store,
        narrative_generator=NarrativeGenerator(http_client, settings),
        synthesizer=NarrationSynthesizer(http_client, settings),
        publisher=publisher,
    )

    app.state.store = store
    app.state.publisher = publisher
    app.state.pipeline = pipeline

    if not settings.has_elevenlabs_key():
        logger.warning("ELEVENLABS_API_KEY not set; stories will use silent audio")

    yield

    # Shutdown
    logger.info("Shutting down...")
    await pipeline.shutdown(settings.shutdown_grace_seconds)
    await http_client.aclose()
    await close_db()
    logger.info("Database connections closed")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to run with (defaults to environment settings)

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    is_production = settings.environment == "production"

    app = FastAPI(
        title="Audio Story API",
        description="Turn a learning topic and question into a short narrated audio story",
        version=settings.app_version,
        docs_url="/api/docs" if not is_production else None,
        redoc_url="/api/redoc" if not is_production else None,
        openapi_url="/api/openapi.json" if not is_production else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add compression for responses > 1KB
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # Import and register routers
    from audiostory.api.routers import health, stories

    app.include_router(health.router, prefix="/api", tags=["health"])
    app.include_router(stories.router, prefix="/api/audio-story", tags=["audio-story"])

    # Register exception handlers
    from audiostory.api.exceptions import register_exception_handlers
    register_exception_handlers(app)

    return app


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "audiostory.api.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
    )
