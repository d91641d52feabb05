"""Shared test fixtures and configuration."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from catalogsearch.config.settings import OpenSearchSettings, Settings
from catalogsearch.models.document import IndexableDocument


@pytest.fixture
def settings() -> Settings:
    """Create a test Settings instance with defaults."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        debug=True,
        opensearch={"endpoint": "http://localhost:9200", "index_prefix": "backstage", "batch_size": 100},
    )


@pytest.fixture
def opensearch_settings(settings: Settings) -> OpenSearchSettings:
    return settings.opensearch


@pytest.fixture
def mock_client() -> MagicMock:
    """An async OpenSearch client double with an empty, healthy cluster."""
    client = MagicMock()
    client.search = AsyncMock(return_value={"hits": {"total": {"value": 0}, "hits": []}})
    client.bulk = AsyncMock(return_value={"errors": False, "items": []})
    client.delete = AsyncMock(return_value={"result": "deleted"})
    client.info = AsyncMock(return_value={"cluster_name": "test-cluster", "version": {"number": "2.11.0"}})
    client.close = AsyncMock()
    client.indices = MagicMock()
    client.indices.exists = AsyncMock(return_value=False)
    client.indices.create = AsyncMock(return_value={"acknowledged": True})
    client.cluster = MagicMock()
    client.cluster.health = AsyncMock(
        return_value={"status": "green", "cluster_name": "test-cluster", "number_of_nodes": 1}
    )
    return client


@pytest.fixture
def make_documents() -> Callable[[int], list[IndexableDocument]]:
    """Factory for catalog component documents with distinct locations."""

    def _make(count: int) -> list[IndexableDocument]:
        return [
            IndexableDocument(
                title=f"service-{n}",
                text=f"Component number {n} of the catalog.",
                location=f"/catalog/default/component/service-{n}",
                kind="Component",
            )
            for n in range(count)
        ]

    return _make


@pytest.fixture
def sample_hit() -> dict[str, Any]:
    """A typical OpenSearch hit for a catalog component."""
    return {
        "_index": "backstage-software-catalog",
        "_id": "L2NhdGFsb2cvZGVmYXVsdC9jb21wb25lbnQvdXNlci1zZXJ2aWNl",
        "_score": 7.25,
        "_source": {
            "title": "user-service",
            "text": "Handles user accounts and profiles.",
            "location": "/catalog/default/component/user-service",
            "kind": "Component",
            "lifecycle": "production",
            "namespace": "default",
            "owner": "team-identity",
        },
        "highlight": {"title": ["<mark>user</mark>-service"]},
    }
