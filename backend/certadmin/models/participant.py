"""Certificate holders attached to an event."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text, UniqueConstraint, false
from sqlalchemy.orm import Mapped, mapped_column, relationship

from certadmin.core.extensions import db

from .base import CreatedAtMixin, ReprMixin, UUIDPKMixin

if TYPE_CHECKING:
    from .event import Event


class Participant(UUIDPKMixin, ReprMixin, CreatedAtMixin, db.Model):
    """Participant holding exactly one certificate for one event."""

    __tablename__ = "participants"

    event_id: Mapped[str] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(254), nullable=False)
    certificate_id: Mapped[str] = mapped_column(String(64), nullable=False)

    revoked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    revoke_reason: Mapped[str | None] = mapped_column(Text)
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    event: Mapped[Event] = relationship(back_populates="participants")

    __table_args__ = (
        UniqueConstraint("certificate_id", name="uq_participants_certificate_id"),
        Index("ix_participants_event_id", "event_id"),
        Index("ix_participants_email", "email"),
    )
