"""Query translator — SearchQuery to OpenSearch query DSL.

Translation is pure and total: empty terms and empty filters are handled,
malformed filter values are dropped rather than rejected.

Relevance for free text combines several title/text clauses, strongest first::

    title.keyword exact    boost 5
    title.keyword prefix   boost 3
    title fuzzy            boost 2
    title.keyword *term*   boost 1.5
    text fuzzy             boost 1

A double-quoted term becomes a single phrase match instead.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from catalogsearch.models.query import SearchQuery


class QueryTranslator:
    """Builds the boolean query tree for a :class:`SearchQuery`.

    Args:
        excluded_kind: Entity kind always filtered out of results.
        keyword_suffix: Suffix of the exact-match sub-field used by filters.
    """

    def __init__(self, excluded_kind: str = "Location", keyword_suffix: str = ".keyword") -> None:
        self.excluded_kind = excluded_kind
        self.keyword_suffix = keyword_suffix

    def translate(self, query: SearchQuery) -> dict[str, Any]:
        must = self._relevance_clauses(query.term)
        filters = [self._exclusion_clause(), *self._filter_clauses(query.filters)]

        # No relevance clause: every document scores equally.
        return {
            "bool": {
                "must": must or [{"match_all": {}}],
                "filter": filters,
            }
        }

    # ── Relevance ────────────────────────────────────────────────────────

    def _relevance_clauses(self, term: str | None) -> list[dict[str, Any]]:
        term = (term or "").strip()
        if not term:
            return []

        if _is_phrase(term):
            phrase = term[1:-1].strip()
            if not phrase:
                return []
            return [
                {
                    "multi_match": {
                        "query": phrase,
                        "type": "phrase",
                        "fields": ["title^3", "text"],
                    }
                }
            ]

        keyword = f"title{self.keyword_suffix}"
        lowered = term.lower()
        return [
            {
                "bool": {
                    "should": [
                        {"match": {keyword: {"query": term, "boost": 5}}},
                        {"prefix": {keyword: {"value": lowered, "boost": 3}}},
                        {"match": {"title": {"query": term, "fuzziness": "AUTO", "boost": 2}}},
                        {"wildcard": {keyword: {"value": f"*{lowered}*", "boost": 1.5}}},
                        {"match": {"text": {"query": term, "fuzziness": "AUTO", "boost": 1}}},
                    ],
                    "minimum_should_match": 1,
                }
            }
        ]

    # ── Filters ──────────────────────────────────────────────────────────

    def _exclusion_clause(self) -> dict[str, Any]:
        return {"bool": {"must_not": {"term": {f"kind{self.keyword_suffix}": self.excluded_kind}}}}

    def _filter_clauses(self, filters: Mapping[str, Any] | None) -> list[dict[str, Any]]:
        clauses: list[dict[str, Any]] = []
        for field, value in (filters or {}).items():
            exact_field = f"{field}{self.keyword_suffix}"
            if isinstance(value, (list, tuple, set)):
                values = [v for v in value if not _is_blank(v)]
                if values:
                    clauses.append({"terms": {exact_field: values}})
            elif not _is_blank(value):
                clauses.append({"term": {exact_field: value}})
        return clauses


def _is_phrase(term: str) -> bool:
    """A term is a phrase only when quoted on both ends."""
    return len(term) >= 2 and term.startswith('"') and term.endswith('"')


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())
