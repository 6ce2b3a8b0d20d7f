"""Typed query specifications shared by the parser, repositories and engine."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Final


class Resource(StrEnum):
    """Closed set of resources served by the admin listing endpoints."""

    PARTICIPANTS = "participants"
    EVENTS = "events"
    LOGS = "logs"


class ParticipantStatus(StrEnum):
    ALL = "all"
    ACTIVE = "active"
    REVOKED = "revoked"


class EventStatus(StrEnum):
    """Temporal status of an event relative to today."""

    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    ENDED = "ended"


class SortDirection(StrEnum):
    ASC = "asc"
    DESC = "desc"


#: Public sort keys accepted per resource.
SORTABLE_FIELDS: Final[Mapping[Resource, tuple[str, ...]]] = {
    Resource.PARTICIPANTS: (
        "name",
        "email",
        "certificate_id",
        "created_at",
        "revoked_at",
        "event_name",
        "event_code",
    ),
    Resource.EVENTS: (
        "event_name",
        "event_code",
        "date",
        "created_at",
        "participant_count",
        "certificate_count",
    ),
    Resource.LOGS: ("action", "created_at", "user_email"),
}

DEFAULT_SORT_FIELDS: Final[Mapping[Resource, str]] = {
    Resource.PARTICIPANTS: "created_at",
    Resource.EVENTS: "created_at",
    Resource.LOGS: "created_at",
}


def allowed_sort_fields(resource: Resource) -> list[str]:
    """Return the sort whitelist of ``resource`` as a list."""
    return list(SORTABLE_FIELDS[resource])


def parse_instant(value: str) -> datetime | None:
    """
    Parse an ISO 8601 date or date-time into an aware UTC ``datetime``.

    Naive values are interpreted as UTC. A trailing ``Z`` is accepted.

    :param value: Raw string from the request.
    :type value: str
    :returns: Parsed instant, or ``None`` when the value is malformed.
    :rtype: datetime | None
    """
    text = value.strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


@dataclass(frozen=True, slots=True)
class FilterSpec:
    """Optional listing filters; ``None`` means "not applied"."""

    search: str | None = None
    tag: str | None = None
    created_by: str | None = None
    event_id: str | None = None
    status: ParticipantStatus | None = None
    event_status: EventStatus | None = None
    date_from: str | None = None
    date_to: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return only the filters that are set, enums as plain strings."""
        return {k: str(v) for k, v in asdict(self).items() if v is not None}


@dataclass(frozen=True, slots=True)
class SortSpec:
    field: str = "created_at"
    direction: str = SortDirection.DESC

    @property
    def ascending(self) -> bool:
        return self.direction == SortDirection.ASC

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "direction": str(self.direction)}


@dataclass(frozen=True, slots=True)
class PaginationSpec:
    """1-based page request; ``offset`` is derived, never supplied."""

    page: int = 1
    limit: int = 12

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True, slots=True)
class QueryError:
    """
    Field-level validation problem.

    :param code: Stable code (``INVALID_PAGINATION``, ``INVALID_SORT``,
        ``INVALID_FILTER``).
    :param message: Human-readable explanation.
    :param field: Offending parameter, when applicable.
    :param value: Raw offending value.
    """

    code: str
    message: str
    field: str | None = None
    value: Any = None


@dataclass(frozen=True, slots=True)
class ParseResult:
    filters: FilterSpec
    sort: SortSpec
    pagination: PaginationSpec
    errors: list[QueryError] = field(default_factory=list)


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
    "parse_instant",
]
