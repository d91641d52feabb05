"""OpenSearch engine — Query and indexing facade over one OpenSearch cluster.

A query round-trip:
  1. Decode the page cursor (bad cursors mean page 0)
  2. Translate the SearchQuery into the OpenSearch query DSL
  3. Search every index under the prefix with highlighting and facet aggregations
  4. Drop untitled and excluded-kind hits, normalize the rest into SearchResults
  5. Encode next/previous cursors and map aggregation buckets into facets

Indexing goes through :class:`DocumentIndexer` instances, one per document
type, each writing to its own ``{prefix}-{type}`` index.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterable, Iterable, Mapping
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from catalogsearch.core.cursor import decode_page_cursor, encode_page_cursor
from catalogsearch.core.indexer import DocumentIndexer
from catalogsearch.core.translator import QueryTranslator
from catalogsearch.models.document import IndexableDocument, SearchDocument
from catalogsearch.models.query import QueryRequestOptions, SearchQuery
from catalogsearch.models.response import BackendHealth, BulkReport, FacetBucket, QueryResult, SearchResult
from catalogsearch.opensearch.exceptions import (
    ConnectionError,
    DocumentNotFoundError,
    IndexingError,
    QueryError,
)

if TYPE_CHECKING:
    from catalogsearch.config.settings import OpenSearchSettings
    from catalogsearch.opensearch.client import SearchClient

logger = logging.getLogger(__name__)

HIGHLIGHT: dict[str, Any] = {
    "fields": {
        "title": {"number_of_fragments": 0},
        "text": {"fragment_size": 150, "number_of_fragments": 3},
        "title.keyword": {"number_of_fragments": 0},
    },
    "pre_tags": ["<mark>"],
    "post_tags": ["</mark>"],
    "require_field_match": False,
}


class OpenSearchEngine:
    """Search engine facade backed by OpenSearch.

    Holds no per-query state; the only mutable state lives in the indexers it
    hands out, which share a semaphore bounding concurrent bulk writes.

    Attributes:
        client: Async OpenSearch client (shared by queries and indexers).
        settings: OpenSearch backend settings.
        translator: Query translator.
    """

    def __init__(
        self,
        client: SearchClient,
        settings: OpenSearchSettings,
        translator: QueryTranslator | None = None,
    ) -> None:
        self.client = client
        self.settings = settings
        self.translator = translator or QueryTranslator(excluded_kind=settings.excluded_kind)
        self._bulk_semaphore = asyncio.Semaphore(settings.max_concurrency)

    @property
    def index_prefix(self) -> str:
        return self.settings.index_prefix

    def index_name(self, document_type: str) -> str:
        return f"{self.index_prefix}-{document_type}"

    # ──────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ──────────────────────────────────────────────────────────────────────

    async def initialize(self) -> None:
        """Verify connectivity with the cluster."""
        try:
            info = await self.client.info()
        except Exception as e:
            raise ConnectionError(f"Failed to connect to OpenSearch: {e}") from e
        version = info.get("version", {}).get("number", "unknown")
        cluster = info.get("cluster_name", "unknown")
        logger.info("Connected to OpenSearch cluster: %s (v%s)", cluster, version)

    async def shutdown(self) -> None:
        """Close the OpenSearch client."""
        await self.client.close()
        logger.info("OpenSearch client closed")

    async def health_check(self) -> BackendHealth:
        """Check OpenSearch cluster health."""
        try:
            start = time.monotonic()
            health = await self.client.cluster.health()
            latency_ms = int((time.monotonic() - start) * 1000)

            status_map = {"green": "healthy", "yellow": "degraded", "red": "unhealthy"}

            return BackendHealth(
                status=status_map.get(health.get("status", "red"), "unhealthy"),
                latency_ms=latency_ms,
                last_check=datetime.now(UTC).isoformat(),
                message=f"Cluster: {health.get('cluster_name')}, Nodes: {health.get('number_of_nodes')}",
            )
        except Exception as e:
            return BackendHealth(status="unhealthy", message=str(e))

    # ──────────────────────────────────────────────────────────────────────
    # Indexing
    # ──────────────────────────────────────────────────────────────────────

    def get_indexer(self, document_type: str) -> DocumentIndexer:
        """Create an indexer writing into ``{prefix}-{document_type}``."""
        return DocumentIndexer(
            self.client,
            self.index_name(document_type),
            batch_size=self.settings.batch_size,
            bulk_semaphore=self._bulk_semaphore,
        )

    async def index_documents(
        self,
        document_type: str,
        documents: Iterable[IndexableDocument | Mapping[str, Any]]
        | AsyncIterable[IndexableDocument | Mapping[str, Any]],
    ) -> BulkReport:
        """Index a finite stream of documents in one indexer session.

        Returns:
            The aggregate report of the session.
        """
        async with self.get_indexer(document_type) as indexer:
            if isinstance(documents, AsyncIterable):
                async for document in documents:
                    await indexer.accept(document)
            else:
                for document in documents:
                    await indexer.accept(document)
        return indexer.report

    async def delete_document(self, document_type: str, document_id: str) -> None:
        """Delete one document by engine id.

        Raises:
            DocumentNotFoundError: If the document (or its index) does not exist.
            IndexingError: On any other backend failure.
        """
        index = self.index_name(document_type)
        try:
            await self.client.delete(index=index, id=document_id)
        except Exception as e:
            if "NotFoundError" in type(e).__name__:
                raise DocumentNotFoundError(f"Document '{document_id}' not found in '{index}'.") from e
            raise IndexingError(f"Failed to delete document '{document_id}' from '{index}': {e}") from e
        logger.info("Deleted document %s from %s", document_id, index)

    # ──────────────────────────────────────────────────────────────────────
    # Query
    # ──────────────────────────────────────────────────────────────────────

    async def query(self, request: SearchQuery, options: QueryRequestOptions | None = None) -> QueryResult:
        """Run one query round-trip.

        Args:
            request: The engine-agnostic search query.
            options: Caller options; only used for log context.

        Returns:
            Normalized results, facets and pagination cursors.

        Raises:
            QueryError: If OpenSearch rejects the query or cannot be reached.
        """
        start = time.monotonic()
        request_id = options.request_id if options else None

        page = decode_page_cursor(request.page_cursor)
        page_limit = request.page_limit or self.settings.default_page_limit
        from_offset = page * page_limit

        translated = self.translator.translate(request)
        index = self._target_indices(request.types)
        logger.info(
            "Search query received (request_id=%s): term=%r filters=%s page=%d from=%d size=%d",
            request_id,
            request.term,
            request.filters,
            page,
            from_offset,
            page_limit,
        )
        logger.debug("Translated OpenSearch query: %s", translated)

        body = {
            "query": translated,
            "highlight": HIGHLIGHT,
            "from": from_offset,
            "size": page_limit,
            "sort": [{"_score": {"order": "desc"}}],
            "aggs": self._aggregations(),
        }

        try:
            if request.types:
                # A requested type may not have been indexed yet.
                response = await self.client.search(index=index, body=body, ignore_unavailable=True)
            else:
                response = await self.client.search(index=index, body=body)
        except Exception as e:
            logger.error(
                "OpenSearch query failed (request_id=%s): term=%r filters=%s after %d ms: %s",
                request_id,
                request.term,
                request.filters,
                int((time.monotonic() - start) * 1000),
                e,
            )
            raise QueryError(f"OpenSearch query failed: {e}") from e

        hits = response.get("hits", {})
        total_hits = _total_hits(hits.get("total"))
        results = [self._to_result(hit) for hit in hits.get("hits", []) if self._keep_hit(hit)]

        logger.info(
            "OpenSearch query completed (request_id=%s): term=%r total=%d returned=%d in %d ms",
            request_id,
            request.term,
            total_hits,
            len(results),
            int((time.monotonic() - start) * 1000),
        )

        has_next_page = total_hits > (page + 1) * page_limit
        return QueryResult(
            results=results,
            facets=self._facets(response.get("aggregations") or {}),
            total_hits=total_hits,
            next_page_cursor=encode_page_cursor(page + 1) if has_next_page else None,
            previous_page_cursor=encode_page_cursor(page - 1) if page > 0 else None,
        )

    # ── Helpers ──────────────────────────────────────────────────────────

    def _target_indices(self, types: list[str] | None) -> str:
        if types:
            return ",".join(self.index_name(t) for t in types)
        return f"{self.index_prefix}-*"

    def _aggregations(self) -> dict[str, Any]:
        return {
            facet.name: {
                "terms": {
                    "field": f"{facet.field}{self.translator.keyword_suffix}",
                    "size": facet.size,
                    "missing": facet.missing,
                }
            }
            for facet in self.settings.facets
        }

    def _keep_hit(self, hit: Mapping[str, Any]) -> bool:
        source = hit.get("_source") or {}
        if not source.get("title"):
            return False
        return source.get("kind") != self.translator.excluded_kind

    def _to_result(self, hit: Mapping[str, Any]) -> SearchResult:
        source = hit.get("_source") or {}
        # Other writers into the prefix may store non-string values here.
        title = _as_text(source.get("title")) or "Untitled"
        document = SearchDocument.model_validate(
            {
                **source,
                "title": title,
                "text": _as_text(source.get("text")) or title,
                "location": _as_text(source.get("location")) or _as_text(source.get("url")) or "#",
            }
        )
        return SearchResult(
            type=_strip_prefix(hit.get("_index", ""), f"{self.index_prefix}-"),
            document=document,
            highlight=hit.get("highlight") or {},
            rank=hit.get("_score") or 0,
        )

    def _facets(self, aggregations: Mapping[str, Any]) -> dict[str, list[FacetBucket]]:
        return {
            facet.name: [
                FacetBucket(value=str(bucket.get("key")), count=bucket.get("doc_count", 0))
                for bucket in (aggregations.get(facet.name) or {}).get("buckets", [])
            ]
            for facet in self.settings.facets
        }


def _total_hits(total: Any) -> int:
    """OpenSearch reports totals as ``{"value": n}`` or, on older APIs, ``n``."""
    if isinstance(total, Mapping):
        return int(total.get("value", 0))
    return int(total or 0)


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return " ".join(_as_text(v) for v in value if v is not None)
    return str(value)


def _strip_prefix(index: str, prefix: str) -> str:
    return index[len(prefix) :] if index.startswith(prefix) else index
