"""Request flow shared by the admin listing endpoints."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import replace

from flask import Response, g, request

from certadmin.api.deps import json_response
from certadmin.core.errors import QueryFailed
from certadmin.core.extensions import get_query_engine
from certadmin.query import (
    QueryError,
    Resource,
    allowed_sort_fields,
    build_query_string,
    parse_query_params,
    sanitize_search_term,
)
from certadmin.schemas import QueryErrorSchema
from certadmin.services import QueryExecutionError, QueryValidationError

logger = logging.getLogger(__name__)

_errors_schema = QueryErrorSchema(many=True)


def invalid_query(errors: Sequence[QueryError], resource: Resource) -> Response:
    """Build the ``400`` body listing every query problem."""
    return json_response(
        {
            "success": False,
            "message": "Invalid query parameters",
            "errors": _errors_schema.dump(errors),
            "allowedSortFields": allowed_sort_fields(resource),
        },
        status=400,
    )


def run_listing(resource: Resource) -> Response:
    """Parse ``request.args``, run the listing and render the envelope."""
    parsed = parse_query_params(request.args, resource)
    if parsed.errors:
        return invalid_query(parsed.errors, resource)

    filters = parsed.filters
    if filters.search:
        filters = replace(filters, search=sanitize_search_term(filters.search) or None)

    try:
        envelope = get_query_engine().query(resource, filters, parsed.sort, parsed.pagination)
    except QueryValidationError as err:
        return invalid_query(err.errors, resource)
    except QueryExecutionError as err:
        raise QueryFailed(str(err)) from err

    principal = getattr(g, "principal", None)
    logger.info(
        "listing.served",
        extra={
            "resource": str(resource),
            "query": build_query_string(filters, parsed.sort, parsed.pagination),
            "elapsed_ms": envelope.query_time,
            "principal": principal.user_id if principal else None,
        },
    )
    return json_response(envelope.to_dict())
