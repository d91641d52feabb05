"""OpenSearch connectivity — client construction and backend exceptions."""

from catalogsearch.opensearch.client import SearchClient, create_client

__all__ = ["SearchClient", "create_client"]
