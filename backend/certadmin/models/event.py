"""Events that participants receive certificates for."""

from __future__ import annotations

import datetime as dt
from typing import TYPE_CHECKING

from sqlalchemy import Date, DateTime, Enum, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from certadmin.core.extensions import db

from .base import CreatedAtMixin, ReprMixin, UUIDPKMixin

if TYPE_CHECKING:
    from .participant import Participant

SyncStatus = Enum("pending", "synced", "error", name="sync_status")


class Event(UUIDPKMixin, ReprMixin, CreatedAtMixin, db.Model):
    """Certificate-issuing event.

    ``date`` is a calendar day; the temporal status shown in listings
    (upcoming / ongoing / ended) is derived from it and never stored.
    """

    __tablename__ = "events"

    event_name: Mapped[str] = mapped_column(String(200), nullable=False)
    event_code: Mapped[str] = mapped_column(String(50), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    tag: Mapped[str | None] = mapped_column(String(80))
    created_by: Mapped[str] = mapped_column(String(120), nullable=False)

    google_sheet_url: Mapped[str | None] = mapped_column(String(500))
    sync_status: Mapped[str] = mapped_column(SyncStatus, nullable=False, server_default="pending")
    last_synced_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True))

    participants: Mapped[list[Participant]] = relationship(
        back_populates="event",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("event_code", name="uq_events_event_code"),
        Index("ix_events_date", "date"),
        Index("ix_events_tag", "tag"),
    )
