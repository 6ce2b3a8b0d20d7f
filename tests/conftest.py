"""Global pytest fixtures for the certificate admin API.

Every test gets a freshly created schema on the in-memory SQLite database.
Factories commit their rows so the sessions checked out of the connection
pool (which share the single in-memory connection) see them.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Generator
from typing import Any

import pytest
from flask import Flask

os.environ["APP_ENV"] = "testing"
os.environ.pop("DATABASE_URL", None)

from certadmin import create_app  # noqa: E402
from certadmin.core.extensions import db, get_cache, get_pool  # noqa: E402

from tests.helpers.auth import admin_token, issue_token  # noqa: E402


@pytest.fixture(scope="session")
def app() -> Generator[Flask, None, None]:
    """Create and configure a Flask application for tests.

    Returns
    -------
    Generator[Flask, None, None]
        Configured Flask application instance inside an app context.
    """

    application = create_app()
    application.logger.setLevel("WARNING")
    with application.app_context():
        yield application


@pytest.fixture()
def database(app: Flask) -> Generator[Any, None, None]:
    """Create all tables for one test and drop them afterwards."""

    db.create_all()
    get_cache().clear()
    try:
        yield db
    finally:
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def session(database: Any) -> Any:
    """Flask-SQLAlchemy scoped session used by the factories."""

    return database.session


@pytest.fixture()
def pool(app: Flask):
    """Session pool installed on the application."""

    return get_pool()


@pytest.fixture()
def client(app: Flask, database: Any) -> Any:
    """Return a Flask test client."""

    return app.test_client()


@pytest.fixture()
def admin_header(app: Flask) -> dict[str, str]:
    """Authorization header carrying an admin access token."""

    return {"Authorization": f"Bearer {admin_token()}"}


@pytest.fixture()
def non_admin_header(app: Flask) -> dict[str, str]:
    """Authorization header for a valid token without the admin role."""

    return {"Authorization": f"Bearer {issue_token('user-1', role='viewer')}"}


@pytest.fixture()
def freeze_time() -> Callable[[str | None], Any]:
    """Factory returning :func:`freezegun.freeze_time`.

    Examples
    --------
    >>> def test_with_frozen_time(freeze_time):
    ...     with freeze_time("2024-06-15"):
    ...         ...
    """

    from freezegun import freeze_time as _freeze_time

    def _factory(target: str | None = None) -> Any:
        return _freeze_time(target or "2024-06-15")

    return _factory
