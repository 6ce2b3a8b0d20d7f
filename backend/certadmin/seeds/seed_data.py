"""Idempotent demo data for local development of the admin listings."""

from __future__ import annotations

import logging
from datetime import UTC, date, datetime, timedelta
from typing import Any, TypeVar, cast

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import select
from sqlalchemy.orm import Session

from certadmin.models import ActivityLog, Event, Participant

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

ADMIN_EMAIL = "admin@example.com"

# ``offset_days`` is relative to the seeding day so every event status shows up
EVENT_FIXTURES: list[dict[str, Any]] = [
    {
        "event_code": "PYCON-WS",
        "event_name": "Python Workshop",
        "offset_days": -30,
        "tag": "workshop",
        "description": "Hands-on introduction to data pipelines",
    },
    {
        "event_code": "SEC-BOOT",
        "event_name": "Security Bootcamp",
        "offset_days": 0,
        "tag": "bootcamp",
        "description": "Two-day intensive on web application security",
    },
    {
        "event_code": "ML-SUMMIT",
        "event_name": "Machine Learning Summit",
        "offset_days": 45,
        "tag": "conference",
        "description": "Talks on production machine learning",
    },
]

PARTICIPANT_FIXTURES: list[dict[str, Any]] = [
    {"event_code": "PYCON-WS", "name": "John Smith", "email": "john.smith@example.com"},
    {"event_code": "PYCON-WS", "name": "Jane Doe", "email": "jane.doe@example.com"},
    {
        "event_code": "PYCON-WS",
        "name": "Carlos Ruiz",
        "email": "carlos.ruiz@example.com",
        "revoked": True,
        "revoke_reason": "Duplicate registration",
    },
    {"event_code": "SEC-BOOT", "name": "Aiko Tanaka", "email": "aiko.tanaka@example.com"},
    {"event_code": "SEC-BOOT", "name": "John Carter", "email": "john.carter@example.com"},
    {"event_code": "ML-SUMMIT", "name": "Priya Patel", "email": "priya.patel@example.com"},
]

LOG_FIXTURES: list[dict[str, Any]] = [
    {"action": "event.created", "details": "Created PYCON-WS", "meta": {"event_code": "PYCON-WS"}},
    {"action": "event.created", "details": "Created SEC-BOOT", "meta": {"event_code": "SEC-BOOT"}},
    {"action": "participants.imported", "details": "Imported 3 rows", "meta": {"rows": 3}},
    {
        "action": "certificate.revoked",
        "details": "Revoked duplicate",
        "meta": {"email": "carlos.ruiz@example.com"},
    },
]


def _session(database: SQLAlchemy) -> Session:
    """Return the current SQLAlchemy session."""
    return cast(Session, database.session)


def _touch(summary: dict[str, dict[str, int]], table: str, created: bool) -> None:
    """Update summary counters for the given table."""
    entry = summary.setdefault(table, {"created": 0, "existing": 0})
    if created:
        entry["created"] += 1
    else:
        entry["existing"] += 1


def _get_or_create(
    session: Session,
    model: type[T],
    *,
    defaults: dict[str, Any] | None = None,
    **filters: Any,
) -> tuple[T, bool]:
    """Fetch ``model`` by ``filters`` or create it using ``defaults``."""
    instance = session.execute(select(model).filter_by(**filters)).scalar_one_or_none()
    if instance is not None:
        return instance, False
    params = dict(defaults or {})
    params.update(filters)
    instance = cast(T, model(**params))
    session.add(instance)
    return instance, True


def seed_events_and_participants(
    database: SQLAlchemy, *, today: date | None = None, verbose: bool = False
) -> dict[str, dict[str, int]]:
    """Create the demo events and their participants."""
    session = _session(database)
    today = today or date.today()
    summary: dict[str, dict[str, int]] = {}

    events: dict[str, Event] = {}
    for fixture in EVENT_FIXTURES:
        event, created = _get_or_create(
            session,
            Event,
            event_code=fixture["event_code"],
            defaults={
                "event_name": fixture["event_name"],
                "date": today + timedelta(days=fixture["offset_days"]),
                "tag": fixture["tag"],
                "description": fixture["description"],
                "created_by": ADMIN_EMAIL,
            },
        )
        events[fixture["event_code"]] = event
        _touch(summary, "events", created)
    session.flush()

    for index, fixture in enumerate(PARTICIPANT_FIXTURES, start=1):
        event = events[fixture["event_code"]]
        revoked = bool(fixture.get("revoked", False))
        _, created = _get_or_create(
            session,
            Participant,
            certificate_id=f"{event.event_code}-{index:04d}",
            defaults={
                "event_id": event.id,
                "name": fixture["name"],
                "email": fixture["email"],
                "revoked": revoked,
                "revoke_reason": fixture.get("revoke_reason"),
                "revoked_at": datetime.now(UTC) if revoked else None,
            },
        )
        _touch(summary, "participants", created)

    session.commit()
    if verbose:
        LOGGER.info("Seeded events and participants: %s", summary)
    return summary


def seed_activity_logs(database: SQLAlchemy, *, verbose: bool = False) -> dict[str, dict[str, int]]:
    """Create a handful of audit entries attributed to the demo admin."""
    session = _session(database)
    summary: dict[str, dict[str, int]] = {}
    for fixture in LOG_FIXTURES:
        _, created = _get_or_create(
            session,
            ActivityLog,
            action=fixture["action"],
            details=fixture["details"],
            defaults={"user_id": "seed-admin", "user_email": ADMIN_EMAIL, "meta": fixture["meta"]},
        )
        _touch(summary, "activity_logs", created)
    session.commit()
    if verbose:
        LOGGER.info("Seeded activity logs: %s", summary)
    return summary


def run_all(database: SQLAlchemy, *, verbose: bool = False) -> dict[str, dict[str, int]]:
    """Run all seeders in foreign-key order."""
    combined: dict[str, dict[str, int]] = {}
    for result in (
        seed_events_and_participants(database, verbose=verbose),
        seed_activity_logs(database, verbose=verbose),
    ):
        for table, counters in result.items():
            entry = combined.setdefault(table, {"created": 0, "existing": 0})
            entry["created"] += counters.get("created", 0)
            entry["existing"] += counters.get("existing", 0)
    return combined


__all__ = ["run_all", "seed_activity_logs", "seed_events_and_participants"]
