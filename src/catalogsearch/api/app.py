"""FastAPI application factory and lifecycle management."""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from catalogsearch import __version__
from catalogsearch.api.deps import set_engine
from catalogsearch.api.v1.router import router as v1_router
from catalogsearch.api.webhook import router as webhook_router
from catalogsearch.config.settings import Settings
from catalogsearch.core.engine import OpenSearchEngine
from catalogsearch.observability.logging import setup_logging
from catalogsearch.opensearch.client import create_client

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings. If None, loads from environment.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        # Explicit config file from the CLI, else catalogsearch.yaml if present
        yaml_path = Path(os.environ.get("CATALOGSEARCH_CONFIG_FILE", "catalogsearch.yaml"))
        if yaml_path.exists():
            logger.info("Loading configuration from %s", yaml_path)
            settings = Settings.from_yaml(yaml_path)
        else:
            settings = Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Manage application lifecycle (startup/shutdown)."""
        setup_logging(settings.observability)
        logger.info("Starting catalogsearch v%s", __version__)

        client = create_client(settings.opensearch)
        engine = OpenSearchEngine(client, settings.opensearch)
        try:
            await engine.initialize()
        except Exception:
            await client.close()
            raise

        set_engine(engine)

        app.state.settings = settings
        app.state.engine = engine

        logger.info(
            "catalogsearch is ready to serve requests on port %d (indices: %s-*)",
            settings.server.port,
            settings.opensearch.index_prefix,
        )
        yield

        logger.info("Shutting down catalogsearch...")
        await engine.shutdown()
        set_engine(None)
        logger.info("catalogsearch shutdown complete")

    app = FastAPI(
        title="catalogsearch",
        description=(
            "OpenSearch search backend for a software catalog — query translation, "
            "faceted paginated search and batched document indexing."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(v1_router, prefix="/v1")
    app.include_router(webhook_router)

    return app
