"""Global Flask extension instances and initialization helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from flask import Flask, current_app
from flask_jwt_extended import JWTManager
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import MetaData
from sqlalchemy.orm import Session, sessionmaker

from certadmin.datastore import ConnectionPool, PoolConfig, QueryCache

if TYPE_CHECKING:
    from certadmin.services.query_engine import QueryEngine

# Global naming convention for all constraints
convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

# Global singletons (import-safe)
db: SQLAlchemy = SQLAlchemy(session_options={"autoflush": False}, metadata=metadata)
jwt = JWTManager()

POOL_KEY = "certadmin.pool"
CACHE_KEY = "certadmin.query_cache"
ENGINE_KEY = "certadmin.query_engine"


def pool_config_from(app: Flask) -> PoolConfig:
    """Build a :class:`PoolConfig` from the ``POOL_*`` settings of ``app``."""
    cfg = app.config
    return PoolConfig(
        max_connections=int(cfg["POOL_MAX_CONNECTIONS"]),
        connection_timeout=float(cfg["POOL_CONNECTION_TIMEOUT"]),
        retry_attempts=int(cfg["POOL_RETRY_ATTEMPTS"]),
        retry_delay=float(cfg["POOL_RETRY_DELAY"]),
        backoff_multiplier=float(cfg["POOL_BACKOFF_MULTIPLIER"]),
    )


def init_app(app: Flask) -> None:
    """Initialize SQLAlchemy, JWT, the session pool and the query cache.

    Parameters
    ----------
    app: flask.Flask
        Application used to bind extension instances. The pool hands out
        plain :class:`~sqlalchemy.orm.Session` objects bound to the
        Flask-SQLAlchemy engine, so it is created inside an app context.
    """
    db.init_app(app)

    # Ensure models are registered on the metadata
    from certadmin import models as _models  # noqa: F401

    jwt.init_app(app)

    with app.app_context():
        session_factory = sessionmaker(bind=db.engine, autoflush=False, expire_on_commit=False)

    pool: ConnectionPool[Session] = ConnectionPool(
        session_factory,
        pool_config_from(app),
        reset=Session.close,
    )
    app.extensions[POOL_KEY] = pool
    app.extensions[CACHE_KEY] = QueryCache(
        default_ttl=float(app.config["QUERY_CACHE_TTL"]),
        max_entries=int(app.config["QUERY_CACHE_MAX_ENTRIES"]),
    )


def get_pool() -> ConnectionPool[Session]:
    """Return the session pool of the current application."""
    pool = current_app.extensions.get(POOL_KEY)
    if pool is None:
        raise RuntimeError("Session pool is not initialized. Call init_app() first.")
    return cast(ConnectionPool[Session], pool)


def get_cache() -> QueryCache:
    """Return the query cache of the current application."""
    cache = current_app.extensions.get(CACHE_KEY)
    if cache is None:
        raise RuntimeError("Query cache is not initialized. Call init_app() first.")
    return cast(QueryCache, cache)


def get_query_engine() -> QueryEngine:
    """Return the application's :class:`QueryEngine`, creating it lazily."""
    engine = current_app.extensions.get(ENGINE_KEY)
    if engine is None:
        from certadmin.services.query_engine import QueryEngine

        engine = QueryEngine(get_pool(), get_cache())
        current_app.extensions[ENGINE_KEY] = engine
    return cast("QueryEngine", engine)
