"""Append-only audit trail of admin actions."""

from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from certadmin.core.extensions import db

from .base import CreatedAtMixin, ReprMixin, UUIDPKMixin


class ActivityLog(UUIDPKMixin, ReprMixin, CreatedAtMixin, db.Model):
    """One audit record.

    The JSON payload lives in the ``metadata`` column; the attribute is named
    ``meta`` because ``metadata`` is reserved on declarative classes.
    """

    __tablename__ = "activity_logs"

    action: Mapped[str] = mapped_column(String(120), nullable=False)
    user_id: Mapped[str | None] = mapped_column(String(120))
    user_email: Mapped[str | None] = mapped_column(String(254))
    details: Mapped[str | None] = mapped_column(Text)
    meta: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSON)

    __table_args__ = (
        Index("ix_activity_logs_action", "action"),
        Index("ix_activity_logs_user_email", "user_email"),
    )
