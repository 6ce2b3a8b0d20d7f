"""Validated, cached and retried execution of the admin listings.

The engine is the single entry point behind every listing endpoint:

1. validate pagination, sort and date filters, aggregating every problem
   into one :class:`QueryValidationError` before touching the store;
2. look the query up in the :class:`QueryCache`, and on a miss run it through
   :meth:`ConnectionPool.execute_with_retry` on a pooled session;
3. attach values derived from "today" (event status) on every call, outside
   the cache;
4. wrap the page into a :class:`ResultEnvelope`.
"""

from __future__ import annotations

import json
import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Final

from marshmallow import Schema
from sqlalchemy.orm import Session

from certadmin.datastore import ConnectionPool, QueryCache
from certadmin.query.types import (
    SORTABLE_FIELDS,
    EventStatus,
    FilterSpec,
    PaginationSpec,
    QueryError,
    Resource,
    SortDirection,
    SortSpec,
    parse_instant,
)
from certadmin.repositories import (
    ActivityLogRepository,
    EventRepository,
    ListingRepository,
    ParticipantRepository,
)
from certadmin.schemas import ActivityLogSchema, EventSchema, ParticipantSchema
from certadmin.services._shared.errors import QueryExecutionError, QueryValidationError

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE: Final[int] = 1000

_LISTINGS: Final[dict[Resource, tuple[type[ListingRepository[Any]], Schema]]] = {
    Resource.PARTICIPANTS: (ParticipantRepository, ParticipantSchema(many=True)),
    Resource.EVENTS: (EventRepository, EventSchema(many=True)),
    Resource.LOGS: (ActivityLogRepository, ActivityLogSchema(many=True)),
}


def derive_event_status(event_date: date, today: date) -> EventStatus:
    """Classify an event day relative to ``today``."""
    if event_date > today:
        return EventStatus.UPCOMING
    if event_date == today:
        return EventStatus.ONGOING
    return EventStatus.ENDED


@dataclass(frozen=True, slots=True)
class PageInfo:
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1


@dataclass(slots=True)
class ResultEnvelope:
    """
    Uniform listing response.

    :param data: Serialized rows of the requested page.
    :param pagination: Page position and totals.
    :param filters: Filters that were applied (unset ones omitted).
    :param sort: Applied sort field and direction.
    :param query_time: Wall time of the call in milliseconds.
    """

    data: list[dict[str, Any]]
    pagination: PageInfo
    filters: dict[str, Any] = field(default_factory=dict)
    sort: dict[str, str] = field(default_factory=dict)
    query_time: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Render the JSON shape served by the listing endpoints."""
        p = self.pagination
        return {
            "data": self.data,
            "pagination": {
                "page": p.page,
                "limit": p.limit,
                "total": p.total,
                "totalPages": p.total_pages,
                "hasNext": p.has_next,
                "hasPrev": p.has_prev,
            },
            "meta": {
                "filters": self.filters,
                "sort": self.sort,
                "queryTime": self.query_time,
            },
        }


class QueryEngine:
    """
    Run admin listing queries through the query cache and the session pool.

    :param pool: Pool of SQLAlchemy sessions.
    :type pool: ConnectionPool[Session]
    :param cache: Shared query cache.
    :type cache: QueryCache
    :param ttl: Cache freshness window in seconds; the cache default when ``None``.
    :type ttl: float | None
    :param today: Callable returning the reference day; ``date.today`` when ``None``.
    :type today: Callable[[], date] | None
    """

    def __init__(
        self,
        pool: ConnectionPool[Session],
        cache: QueryCache,
        *,
        ttl: float | None = None,
        today: Callable[[], date] | None = None,
    ) -> None:
        self.pool = pool
        self.cache = cache
        self.ttl = ttl
        self._today = today

    def today(self) -> date:
        return self._today() if self._today is not None else date.today()

    # ------------------------------- Validation -------------------------------

    def validate(
        self,
        resource: Resource,
        filters: FilterSpec,
        sort: SortSpec,
        pagination: PaginationSpec,
    ) -> list[QueryError]:
        """Return every problem with the query; an empty list means valid."""
        errors: list[QueryError] = []
        if pagination.page < 1:
            errors.append(
                QueryError(
                    code="INVALID_PAGINATION",
                    field="page",
                    message="Page must be greater than 0",
                    value=pagination.page,
                )
            )
        if pagination.limit < 1 or pagination.limit > MAX_PAGE_SIZE:
            errors.append(
                QueryError(
                    code="INVALID_PAGINATION",
                    field="limit",
                    message=f"Limit must be between 1 and {MAX_PAGE_SIZE}",
                    value=pagination.limit,
                )
            )

        allowed = SORTABLE_FIELDS[resource]
        if sort.field not in allowed:
            errors.append(
                QueryError(
                    code="INVALID_SORT",
                    field="sort.field",
                    message=f"Invalid sort field. Allowed fields: {', '.join(allowed)}",
                    value=sort.field,
                )
            )
        if sort.direction not in (SortDirection.ASC, SortDirection.DESC):
            errors.append(
                QueryError(
                    code="INVALID_SORT",
                    field="sort.direction",
                    message="Sort direction must be 'asc' or 'desc'",
                    value=sort.direction,
                )
            )

        for name in ("date_from", "date_to"):
            raw = getattr(filters, name)
            if raw is not None and parse_instant(raw) is None:
                errors.append(
                    QueryError(
                        code="INVALID_FILTER",
                        field=name,
                        message=f"Invalid {name} format. Use ISO 8601 format",
                        value=raw,
                    )
                )
        return errors

    # -------------------------------- Execution -------------------------------

    def cache_key(
        self,
        resource: Resource,
        filters: FilterSpec,
        sort: SortSpec,
        pagination: PaginationSpec,
        today: date,
    ) -> str:
        """Deterministic identity of a listing query."""
        return json.dumps(
            {
                "resource": str(resource),
                "filters": filters.to_dict(),
                "sort": sort.to_dict(),
                "pagination": {"page": pagination.page, "limit": pagination.limit},
                "today": today.isoformat(),
            },
            sort_keys=True,
        )

    def query(
        self,
        resource: Resource,
        filters: FilterSpec,
        sort: SortSpec,
        pagination: PaginationSpec,
    ) -> ResultEnvelope:
        """
        Validate and execute one listing query.

        :raises QueryValidationError: Before any store access, when invalid.
        :raises QueryExecutionError: When the store fails (after retries).
        :returns: The requested page wrapped in a :class:`ResultEnvelope`.
        :rtype: ResultEnvelope
        """
        started = time.perf_counter()
        errors = self.validate(resource, filters, sort, pagination)
        if errors:
            raise QueryValidationError(errors)

        today = self.today()
        repo_cls, schema = _LISTINGS[resource]

        def fetch(session: Session) -> tuple[list[dict[str, Any]], int]:
            repo = repo_cls(session)
            items, total = repo.fetch_page(filters, sort, pagination, today=today)
            return repo.annotate(schema.dump(items)), total

        key = self.cache_key(resource, filters, sort, pagination, today)
        try:
            rows, total = self.cache.get(
                key, lambda: self.pool.execute_with_retry(fetch), ttl=self.ttl
            )
        except Exception as exc:
            logger.error("query.failed", extra={"resource": str(resource)}, exc_info=True)
            raise QueryExecutionError(str(exc)) from exc

        if resource == Resource.EVENTS:
            rows = [
                {**row, "status": str(derive_event_status(date.fromisoformat(row["date"]), today))}
                for row in rows
            ]
        else:
            rows = list(rows)

        elapsed_ms = round((time.perf_counter() - started) * 1000, 3)
        logger.info(
            "query.executed",
            extra={
                "resource": str(resource),
                "returned": len(rows),
                "total": total,
                "elapsed_ms": elapsed_ms,
            },
        )
        return ResultEnvelope(
            data=rows,
            pagination=PageInfo(page=pagination.page, limit=pagination.limit, total=total),
            filters=filters.to_dict(),
            sort=sort.to_dict(),
            query_time=elapsed_ms,
        )

    def query_participants(
        self, filters: FilterSpec, sort: SortSpec, pagination: PaginationSpec
    ) -> ResultEnvelope:
        return self.query(Resource.PARTICIPANTS, filters, sort, pagination)

    def query_events(
        self, filters: FilterSpec, sort: SortSpec, pagination: PaginationSpec
    ) -> ResultEnvelope:
        return self.query(Resource.EVENTS, filters, sort, pagination)

    def query_logs(
        self, filters: FilterSpec, sort: SortSpec, pagination: PaginationSpec
    ) -> ResultEnvelope:
        return self.query(Resource.LOGS, filters, sort, pagination)


__all__ = [
    "MAX_PAGE_SIZE",
    "PageInfo",
    "QueryEngine",
    "ResultEnvelope",
    "derive_event_status",
]
