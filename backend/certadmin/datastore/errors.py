"""
Backing-store error taxonomy used by the retry policy.

Every failure raised by a pooled operation is classified by an HTTP-like
status code. Client errors (``4xx``) are permanent and must never be
retried; anything else, including unclassified exceptions, is considered
transient.
"""

from __future__ import annotations

from http import HTTPStatus

from sqlalchemy import exc as sa_exc


class BackingStoreError(Exception):
    """
    Base class for errors reported by the backing store.

    :param message: Human-readable description, preserved verbatim.
    :type message: str
    :param status: HTTP-like status classifying the failure.
    :type status: int | None
    """

    default_status: int | None = None

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status if status is not None else self.default_status


class ClientError(BackingStoreError):
    """Permanent rejection (constraint violation, malformed request)."""

    default_status = HTTPStatus.BAD_REQUEST


class TransientError(BackingStoreError):
    """Server-side or network failure worth retrying."""

    default_status = HTTPStatus.SERVICE_UNAVAILABLE


# Order matters: IntegrityError/DataError/ProgrammingError all subclass DBAPIError.
_SQLALCHEMY_STATUS: tuple[tuple[type[Exception], int], ...] = (
    (sa_exc.IntegrityError, HTTPStatus.CONFLICT),
    (sa_exc.DataError, HTTPStatus.UNPROCESSABLE_ENTITY),
    (sa_exc.ProgrammingError, HTTPStatus.BAD_REQUEST),
    (sa_exc.OperationalError, HTTPStatus.SERVICE_UNAVAILABLE),
    (sa_exc.InterfaceError, HTTPStatus.SERVICE_UNAVAILABLE),
    (sa_exc.DisconnectionError, HTTPStatus.SERVICE_UNAVAILABLE),
    (sa_exc.TimeoutError, HTTPStatus.SERVICE_UNAVAILABLE),
)


def error_status(exc: BaseException) -> int | None:
    """
    Return the HTTP-like status carried by ``exc``.

    An explicit integer ``status`` attribute wins; otherwise well-known
    SQLAlchemy exceptions are mapped to a status. ``None`` means the error is
    unclassified.

    :param exc: Exception raised by a pooled operation.
    :type exc: BaseException
    :returns: Status code or ``None``.
    :rtype: int | None
    """
    status = getattr(exc, "status", None)
    if isinstance(status, int):
        return int(status)
    for exc_type, mapped in _SQLALCHEMY_STATUS:
        if isinstance(exc, exc_type):
            return int(mapped)
    return None


def is_client_error(exc: BaseException) -> bool:
    """Return ``True`` when ``exc`` is a permanent ``4xx`` failure."""
    status = error_status(exc)
    return status is not None and 400 <= status < 500


__all__ = [
    "BackingStoreError",
    "ClientError",
    "TransientError",
    "error_status",
    "is_client_error",
]
