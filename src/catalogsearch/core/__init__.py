"""Core search pipeline — query translation, indexing and the engine facade."""

from catalogsearch.core.engine import OpenSearchEngine
from catalogsearch.core.indexer import DocumentIndexer, IndexerState
from catalogsearch.core.translator import QueryTranslator

__all__ = ["DocumentIndexer", "IndexerState", "OpenSearchEngine", "QueryTranslator"]
