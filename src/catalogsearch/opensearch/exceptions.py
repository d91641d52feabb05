"""OpenSearch backend exceptions."""


class SearchBackendError(Exception):
    """Base exception for search backend errors."""


class ConnectionError(SearchBackendError):
    """Raised when the backend cannot be reached."""


class QueryError(SearchBackendError):
    """Raised when a search query fails."""


class IndexingError(SearchBackendError):
    """Raised when a batch of documents cannot be written."""


class IndexerClosedError(IndexingError):
    """Raised when a document is pushed to an indexer that was already closed."""


class DocumentNotFoundError(SearchBackendError):
    """Raised when a requested document does not exist."""


class ConfigurationError(SearchBackendError):
    """Raised when backend configuration is invalid."""
