"""Query specifications and request-parameter parsing."""

from __future__ import annotations

from .parser import build_query_string, parse_query_params, sanitize_search_term
from .types import (
    DEFAULT_SORT_FIELDS,
    SORTABLE_FIELDS,
    EventStatus,
    FilterSpec,
    PaginationSpec,
    ParseResult,
    ParticipantStatus,
    QueryError,
    Resource,
    SortDirection,
    SortSpec,
    allowed_sort_fields,
    parse_instant,
)

__all__ = [
    "DEFAULT_SORT_FIELDS",
    "EventStatus",
    "FilterSpec",
    "PaginationSpec",
    "ParseResult",
    "ParticipantStatus",
    "QueryError",
    "Resource",
    "SORTABLE_FIELDS",
    "SortDirection",
    "SortSpec",
    "allowed_sort_fields",
    "build_query_string",
    "parse_instant",
    "parse_query_params",
    "sanitize_search_term",
]
