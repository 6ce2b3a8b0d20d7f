"""Shared API helpers: responses, timing and admin identity."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from flask import Response, current_app, g, jsonify, request
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request

from certadmin.core.errors import Forbidden

F = TypeVar("F", bound=Callable[..., Any])


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated administrator attached to ``flask.g.principal``."""

    user_id: str
    email: str | None = None


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request.endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]


def require_admin(func: F) -> F:
    """Require a valid access token whose ``role`` claim is the admin role.

    Missing or invalid tokens are answered with ``401`` by flask-jwt-extended;
    a valid token without the role yields ``403``.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        verify_jwt_in_request(optional=False)
        claims = get_jwt() or {}
        if claims.get("role") != current_app.config.get("ADMIN_ROLE", "admin"):
            raise Forbidden("Admin access required")
        g.principal = Principal(user_id=str(get_jwt_identity()), email=claims.get("email"))
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


__all__ = ["Principal", "json_response", "require_admin", "timing"]
