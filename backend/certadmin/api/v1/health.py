"""Health check endpoint."""

from __future__ import annotations

from flask import Blueprint, current_app
from sqlalchemy import text

from certadmin.api.deps import json_response, timing
from certadmin.core.extensions import get_pool

bp = Blueprint("health", __name__)


@bp.get("/health")
@timing
def healthcheck():
    """Probe the database through the session pool and report pool counters."""

    pool = get_pool()
    db_status = "ok"
    try:
        pool.execute_with_retry(lambda session: session.execute(text("SELECT 1")).scalar_one())
    except Exception:
        current_app.logger.exception("healthcheck.db_error")
        db_status = "fail"
    payload = {
        "status": "ok" if db_status == "ok" else "degraded",
        "db": db_status,
        "pool": pool.stats(),
        "version": current_app.config.get("APP_VERSION", "dev"),
    }
    return json_response(payload, status=200 if db_status == "ok" else 503)
