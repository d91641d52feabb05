"""Document models — what gets indexed and what comes back from a query.

Both document shapes accept arbitrary extra fields (kind, namespace, owner,
lifecycle, ...): the catalog decides what a document carries, the backend
only relies on ``title``, ``text`` and ``location``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Authorization(BaseModel):
    """Reference to the resource guarding a document. Stored, never enforced."""

    model_config = ConfigDict(populate_by_name=True)

    resource_ref: str = Field(alias="resourceRef", description="Authorization resource reference")


class SearchDocument(BaseModel):
    """A document as returned in search results."""

    model_config = ConfigDict(extra="allow")

    title: str = Field(description="Document title")
    text: str = Field(default="", description="Body text")
    location: str = Field(default="", description="Stable location of the document (URL or path)")


class IndexableDocument(SearchDocument):
    """A document pushed to an indexer."""

    authorization: Authorization | None = Field(default=None, description="Optional authorization reference")

    def to_source(self) -> dict[str, Any]:
        """Serialise to the ``_source`` body written to OpenSearch."""
        return self.model_dump(by_alias=True, exclude_none=True)

    @property
    def identity(self) -> str:
        """The value the engine document id is derived from."""
        return self.location or self.title
