"""Document indexer — Batched, backpressured writes into one OpenSearch index.

Documents are pushed one at a time and buffered. Once the buffer holds
``batch_size`` documents it is flushed with a single bulk request before the
push returns, so at most ``batch_size`` documents are ever unflushed.

Lifecycle::

    IDLE ──accept──▶ BUFFERING ──batch full──▶ FLUSHING ──▶ IDLE
                         │                                   │
                         └──────────────close────────────────┴──▶ CLOSED

Per-document failures reported by the bulk API are logged and counted in the
session :class:`BulkReport`; they never abort the stream. A transport
failure fails the whole flush and is raised as :class:`IndexingError`; the
documents of that batch are not retried.
"""

from __future__ import annotations

import asyncio
import base64
import enum
import logging
import time
from collections.abc import Mapping
from datetime import UTC, datetime
from types import TracebackType
from typing import Any

from catalogsearch.models.document import IndexableDocument
from catalogsearch.models.response import ERROR_SAMPLE_SIZE, BulkReport
from catalogsearch.opensearch.client import SearchClient
from catalogsearch.opensearch.exceptions import IndexerClosedError, IndexingError

logger = logging.getLogger(__name__)

INDEX_SETTINGS: dict[str, Any] = {
    "number_of_shards": 1,
    "number_of_replicas": 0,
    "analysis": {
        "analyzer": {
            "search_analyzer": {
                "type": "custom",
                "tokenizer": "standard",
                "filter": ["lowercase", "stop", "snowball", "word_delimiter"],
            },
        },
        "filter": {
            "word_delimiter": {
                "type": "word_delimiter",
                "generate_word_parts": True,
                "generate_number_parts": True,
                "catenate_words": True,
            },
        },
    },
}

INDEX_MAPPINGS: dict[str, Any] = {
    "properties": {
        "title": {
            "type": "text",
            "analyzer": "search_analyzer",
            "fields": {"keyword": {"type": "keyword"}},
        },
        "text": {"type": "text", "analyzer": "search_analyzer"},
        "location": {"type": "keyword"},
        "@timestamp": {"type": "date"},
        "indexed_at": {"type": "date"},
        "authorization": {"properties": {"resourceRef": {"type": "keyword"}}},
    },
    # Unknown string fields stay searchable and filterable.
    "dynamic_templates": [
        {
            "strings": {
                "match_mapping_type": "string",
                "mapping": {
                    "type": "text",
                    "fields": {"keyword": {"type": "keyword", "ignore_above": 256}},
                },
            }
        }
    ],
}


class IndexerState(str, enum.Enum):
    IDLE = "idle"
    BUFFERING = "buffering"
    FLUSHING = "flushing"
    CLOSED = "closed"


def document_id(document: IndexableDocument) -> str:
    """Stable engine id: unpadded URL-safe base64 of the location (or title)."""
    encoded = base64.urlsafe_b64encode(document.identity.encode("utf-8"))
    return encoded.decode("ascii").rstrip("=")


class DocumentIndexer:
    """Push-based sink writing documents into a single index.

    Only one flush is ever in flight per instance; pushes arriving during a
    flush wait for it to finish. Use as an async context manager to get the
    final flush on exit::

        async with engine.get_indexer("component") as indexer:
            for doc in documents:
                await indexer.accept(doc)
        report = indexer.report

    Args:
        client: Async OpenSearch client.
        index_name: Physical index to write to.
        batch_size: Documents per bulk request.
        bulk_semaphore: Optional semaphore shared between indexers to bound
            concurrent bulk writes against the cluster.
    """

    def __init__(
        self,
        client: SearchClient,
        index_name: str,
        batch_size: int = 100,
        bulk_semaphore: asyncio.Semaphore | None = None,
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self.client = client
        self.index_name = index_name
        self.batch_size = batch_size
        self.report = BulkReport()
        self._bulk_semaphore = bulk_semaphore
        self._buffer: list[IndexableDocument] = []
        self._lock = asyncio.Lock()
        self._state = IndexerState.IDLE
        self._index_ready = False

    @property
    def state(self) -> IndexerState:
        return self._state

    @property
    def pending(self) -> int:
        """Number of buffered, not yet flushed documents."""
        return len(self._buffer)

    async def __aenter__(self) -> DocumentIndexer:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is None:
            await self.close()
            return
        if self._buffer:
            logger.warning(
                "Indexing into %s aborted, discarding %d buffered documents",
                self.index_name,
                len(self._buffer),
            )
        self._buffer = []
        self._state = IndexerState.CLOSED

    async def accept(self, document: IndexableDocument | Mapping[str, Any]) -> None:
        """Buffer one document, flushing first if the batch is full.

        Raises:
            IndexerClosedError: If the indexer was already closed.
            IndexingError: If a triggered flush failed at the transport level.
        """
        if not isinstance(document, IndexableDocument):
            document = IndexableDocument.model_validate(document)

        async with self._lock:
            if self._state is IndexerState.CLOSED:
                raise IndexerClosedError(f"Indexer for '{self.index_name}' is closed.")
            self._buffer.append(document)
            self._state = IndexerState.BUFFERING
            if len(self._buffer) >= self.batch_size:
                await self._flush()

    async def close(self) -> BulkReport:
        """Flush whatever is buffered, then close the indexer.

        Calling ``close`` again is a no-op returning the same report.
        """
        async with self._lock:
            if self._state is IndexerState.CLOSED:
                return self.report
            try:
                if self._buffer:
                    await self._flush()
            finally:
                self._state = IndexerState.CLOSED
        return self.report

    async def _flush(self) -> None:
        documents, self._buffer = self._buffer, []
        if not documents:
            return

        self._state = IndexerState.FLUSHING
        start = time.monotonic()
        try:
            await self._ensure_index()
            body = self._bulk_body(documents)
            if self._bulk_semaphore is not None:
                async with self._bulk_semaphore:
                    response = await self.client.bulk(body=body)
            else:
                response = await self.client.bulk(body=body)
        except Exception as e:
            logger.error(
                "Failed to index %d documents into %s after %d ms: %s",
                len(documents),
                self.index_name,
                int((time.monotonic() - start) * 1000),
                e,
            )
            self._state = IndexerState.IDLE
            raise IndexingError(f"Bulk indexing into '{self.index_name}' failed: {e}") from e

        batch = self._inspect_response(response, len(documents))
        self.report.merge(batch)
        if batch.failed:
            logger.warning(
                "Some documents failed to index into %s: %d of %d failed, sample: %s",
                self.index_name,
                batch.failed,
                len(documents),
                batch.errors,
            )
        else:
            logger.info(
                "Indexed %d documents into %s in %d ms",
                len(documents),
                self.index_name,
                int((time.monotonic() - start) * 1000),
            )
        self._state = IndexerState.BUFFERING if self._buffer else IndexerState.IDLE

    def _bulk_body(self, documents: list[IndexableDocument]) -> list[dict[str, Any]]:
        now = datetime.now(UTC).isoformat()
        body: list[dict[str, Any]] = []
        for document in documents:
            body.append({"index": {"_index": self.index_name, "_id": document_id(document)}})
            body.append({**document.to_source(), "@timestamp": now, "indexed_at": now})
        return body

    @staticmethod
    def _inspect_response(response: Mapping[str, Any], total: int) -> BulkReport:
        if not response.get("errors"):
            return BulkReport(indexed=total)
        failed = [
            item
            for item in response.get("items", [])
            if any(isinstance(op, Mapping) and op.get("error") for op in item.values())
        ]
        return BulkReport(
            indexed=total - len(failed),
            failed=len(failed),
            errors=failed[:ERROR_SAMPLE_SIZE],
        )

    async def _ensure_index(self) -> None:
        """Create the index with its mapping unless it already exists."""
        if self._index_ready:
            return
        if not await self.client.indices.exists(index=self.index_name):
            try:
                await self.client.indices.create(
                    index=self.index_name,
                    body={"settings": INDEX_SETTINGS, "mappings": INDEX_MAPPINGS},
                )
                logger.info("Created OpenSearch index %s", self.index_name)
            except Exception as e:
                # Another indexer may have created it in the meantime.
                if "resource_already_exists_exception" not in str(e):
                    raise
        self._index_ready = True
