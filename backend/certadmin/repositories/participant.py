"""Read-side repository for the participants listing."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from typing import Any

from sqlalchemy import ColumnElement, Select, select
from sqlalchemy.orm import contains_eager

from certadmin.models import Event, Participant
from certadmin.query.types import FilterSpec, ParticipantStatus, Resource
from certadmin.repositories.base import ListingRepository, instant_range


class ParticipantRepository(ListingRepository[Participant]):
    """Participants joined to their event so event columns sort and render."""

    model = Participant
    resource = Resource.PARTICIPANTS

    def _sortable_fields(self) -> Mapping[str, ColumnElement[Any]]:
        return {
            "name": Participant.name,
            "email": Participant.email,
            "certificate_id": Participant.certificate_id,
            "created_at": Participant.created_at,
            "revoked_at": Participant.revoked_at,
            "event_name": Event.event_name,
            "event_code": Event.event_code,
        }

    def _search_columns(self) -> Sequence[ColumnElement[Any]]:
        return (Participant.name, Participant.email, Participant.certificate_id)

    def _filter_clauses(self, filters: FilterSpec, today: date) -> Iterable[ColumnElement[bool]]:
        clauses: list[ColumnElement[bool]] = []
        if filters.event_id:
            clauses.append(Participant.event_id == filters.event_id)
        if filters.status == ParticipantStatus.ACTIVE:
            clauses.append(Participant.revoked.is_(False))
        elif filters.status == ParticipantStatus.REVOKED:
            clauses.append(Participant.revoked.is_(True))
        clauses.extend(instant_range(Participant.created_at, filters))
        return clauses

    def _base_select(self) -> Select[Any]:
        # Inner join: every participant belongs to exactly one event
        return (
            select(Participant)
            .join(Participant.event)
            .options(contains_eager(Participant.event))
        )
