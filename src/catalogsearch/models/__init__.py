"""Data models shared by the core and the HTTP layer."""

from catalogsearch.models.document import Authorization, IndexableDocument, SearchDocument
from catalogsearch.models.query import QueryRequestOptions, SearchQuery
from catalogsearch.models.response import BackendHealth, BulkReport, FacetBucket, QueryResult, SearchResult

__all__ = [
    "Authorization",
    "BackendHealth",
    "BulkReport",
    "FacetBucket",
    "IndexableDocument",
    "QueryRequestOptions",
    "QueryResult",
    "SearchDocument",
    "SearchQuery",
    "SearchResult",
]
