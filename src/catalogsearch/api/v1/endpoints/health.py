"""Health check endpoints — Service and OpenSearch cluster health."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from catalogsearch import __version__
from catalogsearch.api.deps import get_engine
from catalogsearch.core.engine import OpenSearchEngine
from catalogsearch.models.response import BackendHealth

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    """Service health check response."""

    status: str = Field(description="Health status (e.g. 'healthy')")
    version: str = Field(description="catalogsearch server version")
    service: str = Field(description="Service name ('catalogsearch')")
    index_prefix: str = Field(description="Prefix of the indices this service searches")


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service Health Check",
)
async def health_check(
    engine: OpenSearchEngine = Depends(get_engine),
) -> HealthResponse:
    """Basic liveness check; does not contact OpenSearch."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        service="catalogsearch",
        index_prefix=engine.index_prefix,
    )


@router.get(
    "/health/backend",
    response_model=BackendHealth,
    summary="OpenSearch Health Check",
    description="Query OpenSearch cluster health and report status, latency and node count.",
)
async def backend_health(
    engine: OpenSearchEngine = Depends(get_engine),
) -> BackendHealth:
    """Check OpenSearch cluster health."""
    return await engine.health_check()
