"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic**: they never import Flask or HTTP
helpers. The API layer translates them into responses.
"""

from __future__ import annotations

from collections.abc import Sequence

from certadmin.query.types import QueryError


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - The API layer translates them to ``400`` bodies or ``APIError``.
    """


class QueryValidationError(ServiceError):
    """
    Raised before any store access when a listing query is invalid.

    :param errors: Every problem found; never empty.
    :type errors: Sequence[QueryError]
    """

    def __init__(self, errors: Sequence[QueryError]) -> None:
        self.errors = list(errors)
        summary = "; ".join(e.message for e in self.errors)
        super().__init__(f"Query validation failed: {summary}")


class QueryExecutionError(ServiceError):
    """Raised when the backing store fails after retries (or rejects the query)."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Query execution failed: {message}")
