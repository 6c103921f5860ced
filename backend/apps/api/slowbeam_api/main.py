"""
Slowbeam API - FastAPI application entry point.

This module initializes the FastAPI application and configures
middleware, routers, and lifecycle events.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from slowbeam_core import get_logger, init_logging
from slowbeam_core.config import Settings, get_settings
from slowbeam_core.kv_store import create_kv_store
from slowbeam_core.language import derive_default_language
from slowbeam_core.services import PostService, VisitorService
from slowbeam_notion import create_content_source, create_notion_client, create_sync_service

from .routers import posts, translations, visits

logger = get_logger(__name__)


def init_services(app: FastAPI, settings: Settings) -> None:
    """
    Build the services and attach them to ``app.state``.

    The API only serves stored translations; generation is left to the
    worker and the CLI so that one slug is never generated by two processes.
    Its syncs also leave the last sync report to those runs.

    Args:
        app: The FastAPI application instance.
        settings: Application settings.
    """
    kv_store = create_kv_store(settings)
    source = create_content_source(settings)
    notion_client = create_notion_client(settings)
    sync_service = create_sync_service(
        settings, None, source, notion_client=notion_client, read_only=True
    )

    app.state.kv_store = kv_store
    app.state.notion_client = notion_client
    app.state.post_service = PostService(
        source, sync_service, default_language=derive_default_language(settings.site_lang)
    )
    app.state.visitor_service = VisitorService(kv_store, settings.visitor_timezone)


async def close_services(app: FastAPI) -> None:
    """Release clients created by :func:`init_services`."""
    notion_client = getattr(app.state, "notion_client", None)
    if notion_client is not None:
        await notion_client.close()


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Settings override; defaults to the environment settings.

    Returns:
        Configured application.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """
        Application lifecycle manager.

        Args:
            app: The FastAPI application instance.

        Yields:
            None during application runtime.
        """
        init_logging(settings.log_level)
        logger.info("Starting Slowbeam API", extra={"version": settings.version})
        init_services(app, settings)

        yield

        logger.info("Shutting down Slowbeam API")
        await close_services(app)

    app = FastAPI(
        title="Slowbeam API",
        description="Slowbeam - bilingual blog content API",
        version=settings.version,
        lifespan=lifespan,
        docs_url="/api/docs" if settings.debug else None,
        redoc_url="/api/redoc" if settings.debug else None,
    )

    # Configure CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register API routers
    app.include_router(posts.router, prefix="/api/posts", tags=["Posts"])
    app.include_router(visits.router, prefix="/api/visits", tags=["Visits"])
    app.include_router(translations.router, prefix="/api/translations", tags=["Translations"])

    @app.get("/api/health")
    async def health_check() -> dict[str, str]:
        """
        Health check endpoint.

        Returns:
            Dictionary containing service status and version.
        """
        return {"status": "healthy", "version": settings.version}

    return app


app = create_app()
