"""Read-side repository for the activity log listing and its statistics."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import date, datetime
from typing import Any

from sqlalchemy import ColumnElement, String, cast, func, select

from certadmin.models import ActivityLog
from certadmin.query.types import FilterSpec, Resource
from certadmin.repositories.base import ListingRepository, instant_range


class ActivityLogRepository(ListingRepository[ActivityLog]):
    """Audit trail listing; search also looks inside the JSON metadata."""

    model = ActivityLog
    resource = Resource.LOGS

    def _sortable_fields(self) -> Mapping[str, ColumnElement[Any]]:
        return {
            "action": ActivityLog.action,
            "created_at": ActivityLog.created_at,
            "user_email": ActivityLog.user_email,
        }

    def _search_columns(self) -> Sequence[ColumnElement[Any]]:
        return (ActivityLog.action, ActivityLog.user_email, cast(ActivityLog.meta, String))

    def _filter_clauses(self, filters: FilterSpec, today: date) -> Iterable[ColumnElement[bool]]:
        return instant_range(ActivityLog.created_at, filters)

    # ------------------------------- Statistics -------------------------------

    def distinct_actions(self) -> list[str]:
        """Return every recorded action name, alphabetically."""
        stmt = select(ActivityLog.action).distinct().order_by(ActivityLog.action.asc())
        return list(self.session.execute(stmt).scalars().all())

    def count(self, filters: FilterSpec) -> int:
        stmt = select(func.count(ActivityLog.id))
        clauses = list(self._filter_clauses(filters, date.min))
        if clauses:
            stmt = stmt.where(*clauses)
        return int(self.session.execute(stmt).scalar_one())

    def count_since(self, since: datetime, filters: FilterSpec) -> int:
        """Count entries strictly newer than ``since`` within the date filters."""
        stmt = select(func.count(ActivityLog.id)).where(
            ActivityLog.created_at > since, *self._filter_clauses(filters, date.min)
        )
        return int(self.session.execute(stmt).scalar_one())

    def top_by(
        self,
        column: ColumnElement[Any],
        filters: FilterSpec,
        *,
        limit: int = 10,
    ) -> list[tuple[str, int]]:
        """
        Return the ``limit`` most frequent non-null values of ``column``.

        Ties are broken alphabetically so results are stable.

        :param column: ``ActivityLog.action`` or ``ActivityLog.user_email``.
        :param filters: Only ``date_from``/``date_to`` are honoured.
        :param limit: Maximum number of buckets.
        :returns: ``[(value, count), ...]`` in descending count order.
        """
        n = func.count(ActivityLog.id).label("n")
        stmt = (
            select(column, n)
            .where(column.is_not(None), *self._filter_clauses(filters, date.min))
            .group_by(column)
            .order_by(n.desc(), column.asc())
            .limit(limit)
        )
        return [(value, int(count)) for value, count in self.session.execute(stmt)]
