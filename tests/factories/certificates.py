"""Factories for events, participants and activity logs."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta

import factory

from certadmin.models import ActivityLog, Event, Participant

from . import SQLAlchemyFactory, faker


class EventFactory(SQLAlchemyFactory):
    """Factory for :class:`certadmin.models.Event`."""

    class Meta:
        model = Event

    event_name = factory.Sequence(lambda n: f"Event {n}")
    event_code = factory.Sequence(lambda n: f"EVT-{n:04d}")
    date = factory.LazyFunction(lambda: date(2024, 6, 15))
    description = factory.LazyAttribute(lambda _: faker.sentence(nb_words=6))
    tag = "workshop"
    created_by = "admin@example.com"
    created_at = factory.Sequence(lambda n: datetime(2024, 1, 1, tzinfo=UTC) + timedelta(minutes=n))


class ParticipantFactory(SQLAlchemyFactory):
    """Factory for :class:`certadmin.models.Participant`."""

    class Meta:
        model = Participant

    event = factory.SubFactory(EventFactory)
    name = factory.LazyAttribute(lambda _: faker.name())
    email = factory.Sequence(lambda n: f"person{n}@example.com")
    certificate_id = factory.Sequence(lambda n: f"CERT-{n:06d}")
    revoked = False
    created_at = factory.Sequence(lambda n: datetime(2024, 2, 1, tzinfo=UTC) + timedelta(minutes=n))


class ActivityLogFactory(SQLAlchemyFactory):
    """Factory for :class:`certadmin.models.ActivityLog`."""

    class Meta:
        model = ActivityLog

    action = "event.created"
    user_id = "admin-1"
    user_email = "admin@example.com"
    details = factory.LazyAttribute(lambda _: faker.sentence(nb_words=4))
    meta = factory.LazyFunction(dict)
    created_at = factory.Sequence(lambda n: datetime(2024, 3, 1, tzinfo=UTC) + timedelta(minutes=n))
