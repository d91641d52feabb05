"""Search endpoint — Runs one query round-trip against OpenSearch."""

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException

from catalogsearch.api.deps import get_engine
from catalogsearch.core.engine import OpenSearchEngine
from catalogsearch.models.query import QueryRequestOptions, SearchQuery
from catalogsearch.models.response import QueryResult
from catalogsearch.opensearch.exceptions import QueryError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/search",
    response_model=QueryResult,
    summary="Search",
    description=(
        "Translate the query, search every index under the configured prefix "
        "(or only the requested `types`) and return normalized results, facet "
        "buckets and pagination cursors.\n\n"
        "A quoted `term` is matched as an exact phrase; anything else is fuzzy "
        "and boosted towards title matches. `next_page_cursor` / `previous_page_cursor` "
        "are omitted when there is no such page."
    ),
    responses={
        422: {"description": "Validation error — invalid request body (bad page limit, etc.)"},
        500: {"description": "Search backend error — distinct from an empty result"},
    },
)
async def search(
    request: SearchQuery,
    engine: OpenSearchEngine = Depends(get_engine),
) -> QueryResult:
    """Execute a search query.

    Args:
        request: The search query.
        engine: The search engine instance (injected).

    Returns:
        The query result for the requested page.
    """
    options = QueryRequestOptions(request_id=f"req_{uuid.uuid4().hex[:12]}")
    try:
        return await engine.query(request, options)
    except QueryError as e:
        raise HTTPException(
            status_code=500,
            detail=f"Search processing failed: {e!s}",
        ) from e
