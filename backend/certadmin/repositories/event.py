"""Read-side repository for the events listing."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from typing import Any

from sqlalchemy import ColumnElement, case, func, select

from certadmin.models import Event, Participant
from certadmin.query.types import EventStatus, FilterSpec, Resource
from certadmin.repositories.base import ListingRepository, day_range


def _participant_count() -> ColumnElement[int]:
    return (
        select(func.count(Participant.id))
        .where(Participant.event_id == Event.id)
        .correlate(Event)
        .scalar_subquery()
    )


def _certificate_count() -> ColumnElement[int]:
    return (
        select(func.count(Participant.id))
        .where(Participant.event_id == Event.id, Participant.revoked.is_(False))
        .correlate(Event)
        .scalar_subquery()
    )


def event_status_clause(status: EventStatus, today: date) -> ColumnElement[bool]:
    """Translate a derived event status into a predicate on ``Event.date``."""
    if status == EventStatus.UPCOMING:
        return Event.date > today
    if status == EventStatus.ONGOING:
        return Event.date == today
    return Event.date < today


class EventRepository(ListingRepository[Event]):
    """
    Events with per-page participant statistics.

    Sorting by ``participant_count`` / ``certificate_count`` uses correlated
    subqueries; the values shown in the page come from one grouped query in
    :meth:`annotate`.
    """

    model = Event
    resource = Resource.EVENTS

    def _sortable_fields(self) -> Mapping[str, ColumnElement[Any]]:
        return {
            "event_name": Event.event_name,
            "event_code": Event.event_code,
            "date": Event.date,
            "created_at": Event.created_at,
            "participant_count": _participant_count(),
            "certificate_count": _certificate_count(),
        }

    def _search_columns(self) -> Sequence[ColumnElement[Any]]:
        return (Event.event_name, Event.event_code, Event.description)

    def _filter_clauses(self, filters: FilterSpec, today: date) -> Iterable[ColumnElement[bool]]:
        clauses: list[ColumnElement[bool]] = []
        if filters.tag:
            clauses.append(Event.tag == filters.tag)
        if filters.created_by:
            clauses.append(Event.created_by == filters.created_by)
        clauses.extend(day_range(Event.date, filters))
        if filters.event_status is not None:
            clauses.append(event_status_clause(filters.event_status, today))
        return clauses

    def participant_stats(self, event_ids: Sequence[str]) -> dict[str, tuple[int, int]]:
        """
        Return ``{event_id: (participant_count, certificate_count)}``.

        Events without participants are absent from the mapping.

        :param event_ids: Ids of the events on the current page.
        :type event_ids: Sequence[str]
        :rtype: dict[str, tuple[int, int]]
        """
        if not event_ids:
            return {}
        active = func.sum(case((Participant.revoked.is_(False), 1), else_=0))
        stmt = (
            select(Participant.event_id, func.count(Participant.id), active)
            .where(Participant.event_id.in_(event_ids))
            .group_by(Participant.event_id)
        )
        return {
            event_id: (int(total), int(certified or 0))
            for event_id, total, certified in self.session.execute(stmt)
        }

    def annotate(self, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        stats = self.participant_stats([row["id"] for row in rows])
        for row in rows:
            participants, certificates = stats.get(row["id"], (0, 0))
            row["participant_count"] = participants
            row["certificate_count"] = certificates
        return rows
