"""Reusable SQLAlchemy mixins shared by domain models (typed 2.0)."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column


def new_id() -> str:
    """Return a fresh textual UUID4 primary key."""
    return str(uuid.uuid4())


class CreatedAtMixin:
    """Provide a ``created_at`` column filled by the database on insert.

    Attributes
    ----------
    created_at:
        Timezone-aware insertion timestamp; the default listing sort key.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        index=True,
    )


class UUIDPKMixin:
    """Expose a UUID primary key column named ``id``.

    Attributes
    ----------
    id:
        Textual UUID generated client-side so rows are addressable before flush.
    """

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)


class ReprMixin:
    """Provide a concise ``__repr__`` including the class name and id."""

    def __repr__(self) -> str:
        """Return a short and useful string representation.

        :returns: Debug-friendly ``<ClassName id=...>``.
        :rtype: str
        """
        cls = self.__class__.__name__
        key = getattr(self, "id", None)
        return f"<{cls} id={key}>"
