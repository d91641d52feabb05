"""Webhook endpoints — Push indexing, document deletion and reindex requests.

External systems push documents here instead of waiting for a scheduled
collation run. All documents of one request go through a single indexer
session, so the request returns only once every batch has been flushed.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, ValidationError

from catalogsearch.api.deps import get_engine
from catalogsearch.core.engine import OpenSearchEngine
from catalogsearch.models.document import IndexableDocument
from catalogsearch.opensearch.exceptions import DocumentNotFoundError, SearchBackendError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["webhook"])


# ── Request / response models ────────────────────────────────────────────


class IndexWebhookRequest(BaseModel):
    """Documents pushed for indexing."""

    documents: list[dict[str, Any]] = Field(description="Raw documents to index")
    type: str = Field(default="default", min_length=1, description="Document type (index suffix)")


class IndexWebhookResponse(BaseModel):
    success: bool
    indexed: int = Field(description="Documents accepted by OpenSearch")
    failed: int = Field(default=0, description="Documents rejected by OpenSearch")
    type: str
    timestamp: str


class DeleteWebhookResponse(BaseModel):
    success: bool
    deleted: str
    type: str
    timestamp: str


def normalize_document(raw: dict[str, Any]) -> IndexableDocument:
    """Fill ``title``/``text``/``location`` from common alternative fields."""
    return IndexableDocument.model_validate(
        {
            **raw,
            "title": raw.get("title") or "",
            "text": raw.get("text") or raw.get("content") or "",
            "location": raw.get("location") or raw.get("url") or "",
        }
    )


def _now() -> str:
    return datetime.now(UTC).isoformat()


# ── Endpoints ────────────────────────────────────────────────────────────


@router.post(
    "/webhook/index",
    response_model=IndexWebhookResponse,
    summary="Index Documents",
    description=(
        "Index the pushed documents into `{prefix}-{type}`. Per-document failures "
        "reported by OpenSearch are counted in `failed`; a transport failure "
        "fails the request."
    ),
    responses={
        422: {"description": "Validation error — no `documents` array, or an invalid document"},
        500: {"description": "Indexing failed"},
    },
)
async def index_documents(
    request: IndexWebhookRequest,
    engine: OpenSearchEngine = Depends(get_engine),
) -> IndexWebhookResponse:
    logger.info("Received indexing webhook: type=%s documents=%d", request.type, len(request.documents))
    try:
        documents = [normalize_document(raw) for raw in request.documents]
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=f"Invalid document: {e!s}") from e

    try:
        report = await engine.index_documents(request.type, documents)
    except SearchBackendError as e:
        logger.error("Webhook indexing failed: %s", e, exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Webhook indexing failed: {e!s}",
        ) from e

    return IndexWebhookResponse(
        success=report.failed == 0,
        indexed=report.indexed,
        failed=report.failed,
        type=request.type,
        timestamp=_now(),
    )


@router.delete(
    "/webhook/documents/{document_type}/{document_id}",
    response_model=DeleteWebhookResponse,
    summary="Delete Document",
    description="Delete one document by its engine id from `{prefix}-{document_type}`.",
    responses={
        404: {"description": "No such document"},
        500: {"description": "Deletion failed"},
    },
)
async def delete_document(
    document_type: str,
    document_id: str,
    engine: OpenSearchEngine = Depends(get_engine),
) -> DeleteWebhookResponse:
    logger.info("Received deletion webhook: type=%s id=%s", document_type, document_id)
    try:
        await engine.delete_document(document_type, document_id)
    except DocumentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except SearchBackendError as e:
        logger.error("Webhook deletion failed: %s", e, exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Webhook deletion failed: {e!s}",
        ) from e

    return DeleteWebhookResponse(
        success=True,
        deleted=document_id,
        type=document_type,
        timestamp=_now(),
    )


@router.post(
    "/reindex/{document_type}",
    summary="Reindex Document Type",
    description=(
        "Reserved. A full rebuild needs a document source to collate from, which "
        "this service does not own; push documents to `/webhook/index` instead."
    ),
    responses={501: {"description": "Reindexing is not available"}},
)
async def reindex(
    document_type: str,
    engine: OpenSearchEngine = Depends(get_engine),
) -> None:
    logger.info("Manual reindex requested for %s", engine.index_name(document_type))
    raise HTTPException(
        status_code=501,
        detail=f"Reindexing '{document_type}' is not supported; push documents to /webhook/index.",
    )
