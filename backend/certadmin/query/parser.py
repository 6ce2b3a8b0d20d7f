"""Normalize untrusted listing query-string parameters.

Parsing is deliberately forgiving: unknown keys are dropped, invalid enum
filters are omitted, and unusable pagination values fall back to defaults.
Only malformed date filters are reported, as collected :class:`QueryError`
values rather than exceptions.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, Final
from urllib.parse import urlencode

from marshmallow import EXCLUDE, Schema, ValidationError, fields, validate

from certadmin.query.types import (
    DEFAULT_SORT_FIELDS,
    EventStatus,
    FilterSpec,
    PaginationSpec,
    ParseResult,
    ParticipantStatus,
    QueryError,
    Resource,
    SortDirection,
    SortSpec,
    parse_instant,
)

DEFAULT_PAGE: Final[int] = 1
DEFAULT_LIMIT: Final[int] = 12
MAX_LIMIT: Final[int] = 100

RECOGNIZED_KEYS: Final[tuple[str, ...]] = (
    "search",
    "tag",
    "created_by",
    "event_id",
    "status",
    "event_status",
    "date_from",
    "date_to",
    "sort_by",
    "sort_order",
    "page",
    "limit",
)

DATE_FIELDS: Final[tuple[str, ...]] = ("date_from", "date_to")

# Control characters and LIKE wildcards
_SEARCH_UNSAFE = re.compile(r"[\n\r\t%_]")
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class LeadingInteger(fields.Integer):
    """Integer read from the leading digits of a string (``"10abc"`` is 10, ``"2.5"`` is 2)."""

    def _deserialize(self, value, attr, data, **kwargs):
        if isinstance(value, str):
            match = _LEADING_INT.match(value)
            if match is None:
                raise self.make_error("invalid")
            value = match.group(1)
        return super()._deserialize(value, attr, data, **kwargs)


def _validate_instant(value: str) -> None:
    if parse_instant(value) is None:
        raise ValidationError("Not an ISO 8601 date.")


class ListingQuerySchema(Schema):
    """Marshmallow view of the listing query string."""

    class Meta:
        unknown = EXCLUDE

    search = fields.String()
    tag = fields.String()
    created_by = fields.String()
    event_id = fields.String()
    status = fields.String(validate=validate.OneOf([s.value for s in ParticipantStatus]))
    event_status = fields.String(validate=validate.OneOf([s.value for s in EventStatus]))
    date_from = fields.String(validate=_validate_instant)
    date_to = fields.String(validate=_validate_instant)
    sort_by = fields.String()
    sort_order = fields.String()
    page = LeadingInteger(validate=validate.Range(min=1))
    limit = LeadingInteger(validate=validate.Range(min=1, max=MAX_LIMIT))


_schema = ListingQuerySchema()


def _recognized(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Keep recognized, non-blank keys (``MultiDict.get`` yields the first value)."""
    picked: dict[str, Any] = {}
    for key in RECOGNIZED_KEYS:
        value = raw.get(key)
        if value is None or (isinstance(value, str) and value == ""):
            continue
        picked[key] = value
    return picked


def parse_query_params(raw: Mapping[str, Any], resource: Resource) -> ParseResult:
    """
    Turn raw request parameters into typed filter/sort/pagination values.

    :param raw: Query-string mapping (``request.args`` or a plain dict).
    :type raw: Mapping[str, Any]
    :param resource: Resource being listed; selects the default sort field.
    :type resource: Resource
    :returns: Parsed specifications plus collected date errors.
    :rtype: ParseResult
    """
    data = _recognized(raw)
    try:
        loaded: dict[str, Any] = _schema.load(data)
        messages: dict[str, Any] = {}
    except ValidationError as err:
        loaded = dict(err.valid_data or {})
        messages = err.messages if isinstance(err.messages, dict) else {}

    errors = [
        QueryError(
            code="INVALID_FILTER",
            field=name,
            message=f"Invalid {name} format. Use ISO 8601 format",
            value=data.get(name),
        )
        for name in DATE_FIELDS
        if name in messages
    ]

    status = loaded.get("status")
    event_status = loaded.get("event_status")
    filters = FilterSpec(
        search=loaded.get("search"),
        tag=loaded.get("tag"),
        created_by=loaded.get("created_by"),
        event_id=loaded.get("event_id"),
        status=ParticipantStatus(status) if status else None,
        event_status=EventStatus(event_status) if event_status else None,
        date_from=loaded.get("date_from"),
        date_to=loaded.get("date_to"),
    )

    direction = SortDirection.ASC if loaded.get("sort_order") == "asc" else SortDirection.DESC
    sort = SortSpec(field=loaded.get("sort_by") or DEFAULT_SORT_FIELDS[resource], direction=direction)

    pagination = PaginationSpec(
        page=loaded.get("page", DEFAULT_PAGE),
        limit=loaded.get("limit", DEFAULT_LIMIT),
    )
    return ParseResult(filters=filters, sort=sort, pagination=pagination, errors=errors)


def sanitize_search_term(term: str) -> str:
    """Replace newline, tab, ``%`` and ``_`` with spaces and trim the result."""
    return _SEARCH_UNSAFE.sub(" ", term).strip()


def build_query_string(filters: FilterSpec, sort: SortSpec, pagination: PaginationSpec) -> str:
    """Render parsed parameters back into a canonical query string."""
    params: list[tuple[str, str]] = [(k, v) for k, v in filters.to_dict().items() if v != ""]
    params += [
        ("sort_by", sort.field),
        ("sort_order", str(sort.direction)),
        ("page", str(pagination.page)),
        ("limit", str(pagination.limit)),
    ]
    return urlencode(params)


__all__ = [
    "DEFAULT_LIMIT",
    "DEFAULT_PAGE",
    "LeadingInteger",
    "ListingQuerySchema",
    "MAX_LIMIT",
    "build_query_string",
    "parse_query_params",
    "sanitize_search_term",
]
