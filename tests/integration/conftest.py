"""Integration test fixtures — a live OpenSearch node with catalog documents.

Expects OpenSearch to be running on localhost:9201 (security plugin disabled),
for example::

    docker run -d -p 9201:9200 -e discovery.type=single-node \
        -e DISABLE_SECURITY_PLUGIN=true opensearchproject/opensearch:2

Tests write into indices under the ``citest`` prefix, which are dropped
before and after the session.
"""

from __future__ import annotations

import time
from typing import Any

import httpx
import pytest

from catalogsearch.config.settings import OpenSearchSettings
from catalogsearch.core.engine import OpenSearchEngine
from catalogsearch.opensearch.client import create_client

OPENSEARCH_HOST = "http://localhost:9201"
INDEX_PREFIX = "citest"

CATALOG_DOCUMENTS: list[dict[str, Any]] = [
    {
        "title": "user-service",
        "text": "Handles user accounts, profiles and password resets.",
        "location": "/catalog/default/component/user-service",
        "kind": "Component",
        "lifecycle": "production",
        "namespace": "default",
        "owner": "team-identity",
    },
    {
        "title": "billing-service",
        "text": "Creates invoices and charges customers for their subscriptions.",
        "location": "/catalog/default/component/billing-service",
        "kind": "Component",
        "lifecycle": "production",
        "namespace": "default",
        "owner": "team-payments",
    },
    {
        "title": "user-events",
        "text": "Kafka topic carrying user lifecycle events.",
        "location": "/catalog/default/resource/user-events",
        "kind": "Resource",
        "lifecycle": "experimental",
        "namespace": "default",
        "owner": "team-identity",
    },
    {
        "title": "payments-api",
        "text": "Public API for card payments.",
        "location": "/catalog/payments/api/payments-api",
        "kind": "API",
        "lifecycle": "production",
        "namespace": "payments",
        "owner": "team-payments",
    },
    {
        "title": "catalog-info",
        "text": "Registered location of the service catalog files.",
        "location": "/catalog/default/location/catalog-info",
        "kind": "Location",
        "namespace": "default",
    },
]


def _wait_for_service(url: str, timeout: float = 60.0) -> bool:
    """Block until *url* returns HTTP 200, or timeout."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        try:
            r = httpx.get(url, timeout=10)
            if r.status_code == 200:
                return True
        except httpx.HTTPError:
            pass
        time.sleep(2)
    return False


def _drop_test_indices(host: str) -> None:
    httpx.delete(f"{host}/{INDEX_PREFIX}-*", params={"ignore_unavailable": "true"}, timeout=30)


@pytest.fixture(scope="session")
def opensearch_ready():
    """Ensure OpenSearch is running and starts without test indices."""
    if not _wait_for_service(OPENSEARCH_HOST):
        pytest.skip(f"OpenSearch not available at {OPENSEARCH_HOST}")
    _drop_test_indices(OPENSEARCH_HOST)
    yield OPENSEARCH_HOST
    _drop_test_indices(OPENSEARCH_HOST)


def refresh(host: str) -> None:
    """Make everything indexed so far searchable."""
    httpx.post(f"{host}/{INDEX_PREFIX}-*/_refresh", timeout=30).raise_for_status()


@pytest.fixture
def catalog_documents() -> list[dict[str, Any]]:
    return [dict(doc) for doc in CATALOG_DOCUMENTS]


@pytest.fixture
async def engine(opensearch_ready):
    settings = OpenSearchSettings(endpoint=opensearch_ready, index_prefix=INDEX_PREFIX, batch_size=2)
    e = OpenSearchEngine(create_client(settings), settings)
    await e.initialize()
    yield e
    await e.shutdown()


@pytest.fixture
async def seeded(engine, opensearch_ready, catalog_documents):
    """Index the catalog documents into ``citest-software-catalog``."""
    report = await engine.index_documents("software-catalog", catalog_documents)
    refresh(opensearch_ready)
    return report


@pytest.fixture
def refresh_indices(opensearch_ready):
    return lambda: refresh(opensearch_ready)
