"""Aggregate views over the activity log (action catalogue and usage stats)."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any, TypeVar

from sqlalchemy.orm import Session

from certadmin.datastore import ConnectionPool, QueryCache
from certadmin.models import ActivityLog
from certadmin.query.types import FilterSpec, QueryError, parse_instant
from certadmin.repositories import ActivityLogRepository
from certadmin.services._shared.errors import QueryExecutionError, QueryValidationError

T = TypeVar("T")

logger = logging.getLogger(__name__)

TOP_N = 10
RECENT_WINDOW = timedelta(hours=24)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ActivityStatsService:
    """
    Read-only statistics on ``activity_logs`` through the same pool and cache
    as the listings.

    :param pool: Pool of SQLAlchemy sessions.
    :param cache: Shared query cache.
    :param ttl: Cache freshness window in seconds (cache default when ``None``).
    :param now: Clock returning an aware UTC ``datetime``.
    """

    def __init__(
        self,
        pool: ConnectionPool[Session],
        cache: QueryCache,
        *,
        ttl: float | None = None,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.pool = pool
        self.cache = cache
        self.ttl = ttl
        self._now = now

    def _run(self, key: str, operation: Callable[[ActivityLogRepository], T]) -> T:
        try:
            return self.cache.get(
                key,
                lambda: self.pool.execute_with_retry(
                    lambda session: operation(ActivityLogRepository(session))
                ),
                ttl=self.ttl,
            )
        except Exception as exc:
            logger.error("stats.failed", extra={"cache_key": key}, exc_info=True)
            raise QueryExecutionError(str(exc)) from exc

    def list_actions(self) -> list[str]:
        """Return the distinct action names, alphabetically."""
        return self._run("logs:actions", lambda repo: repo.distinct_actions())

    def stats(self, date_from: str | None = None, date_to: str | None = None) -> dict[str, Any]:
        """
        Summarize the log: totals, top actions, top users, last-24h volume.

        :param date_from: Optional inclusive ISO 8601 lower bound.
        :param date_to: Optional inclusive ISO 8601 upper bound.
        :raises QueryValidationError: When a bound is not ISO 8601.
        :returns: Mapping dumped by :class:`~certadmin.schemas.LogStatsSchema`.
        """
        errors = [
            QueryError(
                code="INVALID_FILTER",
                field=name,
                message=f"Invalid {name} format. Use ISO 8601 format",
                value=raw,
            )
            for name, raw in (("date_from", date_from), ("date_to", date_to))
            if raw is not None and parse_instant(raw) is None
        ]
        if errors:
            raise QueryValidationError(errors)

        filters = FilterSpec(date_from=date_from, date_to=date_to)
        since = self._now() - RECENT_WINDOW

        def compute(repo: ActivityLogRepository) -> dict[str, Any]:
            return {
                "total_logs": repo.count(filters),
                "recent_logs": repo.count_since(since, filters),
                "top_actions": [
                    {"action": action, "count": n}
                    for action, n in repo.top_by(ActivityLog.action, filters, limit=TOP_N)
                ],
                "top_users": [
                    {"user": user, "count": n}
                    for user, n in repo.top_by(ActivityLog.user_email, filters, limit=TOP_N)
                ],
            }

        key = json.dumps(
            {"stats": filters.to_dict(), "hour": since.strftime("%Y-%m-%dT%H")}, sort_keys=True
        )
        result = dict(self._run(key, compute))
        result["date_range"] = {"from": date_from, "to": date_to}
        return result


__all__ = ["ActivityStatsService"]
