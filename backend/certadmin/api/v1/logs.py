"""Activity log endpoints: listing, action catalogue and statistics."""

from __future__ import annotations

from flask import Blueprint, request

from certadmin.api.deps import json_response, require_admin, timing
from certadmin.api.v1._listing import invalid_query, run_listing
from certadmin.core.errors import QueryFailed
from certadmin.core.extensions import get_cache, get_pool
from certadmin.query import Resource
from certadmin.schemas import LogStatsSchema
from certadmin.services import ActivityStatsService, QueryExecutionError, QueryValidationError

bp = Blueprint("logs", __name__)

stats_schema = LogStatsSchema()


def _stats_service() -> ActivityStatsService:
    return ActivityStatsService(get_pool(), get_cache())


@bp.get("")
@require_admin
@timing
def list_logs():
    """Return activity log entries filtered, sorted and paginated."""

    return run_listing(Resource.LOGS)


@bp.get("/actions")
@require_admin
@timing
def list_actions():
    """Return the distinct action names, for filter dropdowns."""

    try:
        actions = _stats_service().list_actions()
    except QueryExecutionError as err:
        raise QueryFailed(str(err)) from err
    return json_response({"success": True, "data": actions})


@bp.get("/stats")
@require_admin
@timing
def log_stats():
    """Return totals, top actions, top users and the last-24h volume."""

    try:
        stats = _stats_service().stats(
            date_from=request.args.get("date_from") or None,
            date_to=request.args.get("date_to") or None,
        )
    except QueryValidationError as err:
        return invalid_query(err.errors, Resource.LOGS)
    except QueryExecutionError as err:
        raise QueryFailed(str(err)) from err
    return json_response({"success": True, "data": stats_schema.dump(stats)})
