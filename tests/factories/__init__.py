"""Factory Boy setup for test data generation."""

from __future__ import annotations

import factory
from faker import Faker

from certadmin.core.extensions import db

faker = Faker()
Faker.seed(1234)


class SQLAlchemyFactory(factory.alchemy.SQLAlchemyModelFactory):
    """Base factory committing rows through the Flask-SQLAlchemy session.

    Rows are committed (not just flushed) because listings run on pooled
    sessions that only observe committed data.
    """

    class Meta:
        abstract = True
        sqlalchemy_session_factory = lambda: db.session  # noqa: E731
        sqlalchemy_session_persistence = "commit"
