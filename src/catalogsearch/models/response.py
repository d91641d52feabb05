"""Response models — uniform query results, facets and indexing reports."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, SerializerFunctionWrapHandler, model_serializer

from catalogsearch.models.document import SearchDocument

ERROR_SAMPLE_SIZE = 3


class SearchResult(BaseModel):
    """A single normalized hit."""

    type: str = Field(description="Document type (physical index name without the prefix)")
    document: SearchDocument = Field(description="Hit source with normalized title/text/location")
    highlight: dict[str, list[str]] = Field(default_factory=dict, description="Highlighted fragments per field")
    rank: float = Field(default=0.0, description="Relevance score")


class FacetBucket(BaseModel):
    """One value of a facet and its document count."""

    value: str = Field(description="Bucket key")
    count: int = Field(description="Number of matching documents")


class QueryResult(BaseModel):
    """Result of one query round-trip.

    Cursors are ``None`` when there is no next/previous page and are left
    out of the serialised form; every other ``None`` (including document
    fields) is kept.
    """

    results: list[SearchResult] = Field(default_factory=list, description="Normalized hits for this page")
    facets: dict[str, list[FacetBucket]] = Field(default_factory=dict, description="Facet buckets by group")
    total_hits: int = Field(default=0, description="Total number of matching documents")
    next_page_cursor: str | None = Field(default=None, description="Cursor of the next page")
    previous_page_cursor: str | None = Field(default=None, description="Cursor of the previous page")

    @model_serializer(mode="wrap")
    def _omit_absent_cursors(self, handler: SerializerFunctionWrapHandler):
        data = handler(self)
        for key in ("next_page_cursor", "previous_page_cursor"):
            if data.get(key) is None:
                data.pop(key, None)
        return data


class BulkReport(BaseModel):
    """Aggregate outcome of an indexing session.

    Per-document failures are counted here instead of failing the batch;
    ``errors`` keeps only a sample of the failed bulk items.
    """

    indexed: int = Field(default=0, description="Documents accepted by OpenSearch")
    failed: int = Field(default=0, description="Documents rejected by OpenSearch")
    errors: list[dict[str, Any]] = Field(default_factory=list, description="Sample of failed bulk items")

    def merge(self, other: BulkReport) -> None:
        self.indexed += other.indexed
        self.failed += other.failed
        room = ERROR_SAMPLE_SIZE - len(self.errors)
        if room > 0:
            self.errors.extend(other.errors[:room])


class BackendHealth(BaseModel):
    """Health status of the OpenSearch cluster."""

    status: str = Field(description="Health status: healthy, degraded, unhealthy")
    latency_ms: int = Field(default=0, description="Latency of the health check in ms")
    last_check: str | None = Field(default=None, description="ISO timestamp of the health check")
    message: str | None = Field(default=None, description="Additional health message")
