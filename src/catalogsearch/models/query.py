"""Query request models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

FilterValue = str | int | float | bool | list[str | int | float | bool | None] | None


class SearchQuery(BaseModel):
    """Engine-agnostic search request.

    ``filters`` maps a facet field to one or more required values: values of
    one field are OR-ed, distinct fields are AND-ed. An absent cursor means
    the first page.
    """

    model_config = ConfigDict(populate_by_name=True)

    term: str = Field(default="", max_length=2000, description="Free text, or a double-quoted exact phrase")
    filters: dict[str, FilterValue] = Field(default_factory=dict, description="Facet field filters")
    types: list[str] | None = Field(default=None, description="Document types to search (None = all)")
    page_limit: int | None = Field(default=None, gt=0, alias="pageLimit", description="Results per page")
    page_cursor: str | None = Field(default=None, alias="pageCursor", description="Opaque pagination cursor")


class QueryRequestOptions(BaseModel):
    """Per-call options forwarded by the search API layer."""

    request_id: str | None = Field(default=None, description="Caller request identifier, used for logging")
    extra: dict[str, Any] = Field(default_factory=dict, description="Additional caller options")
