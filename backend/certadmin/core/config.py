"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'


# No-op when the file does not exist
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int) -> int:
    """Parse an integer from an environment variable, falling back on garbage."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    try:
        return int(val)
    except ValueError:
        return default


def env_float(name: str, default: float) -> float:
    """Parse a float (seconds, ratios) from an environment variable."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    try:
        return float(val)
    except ValueError:
        return default


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    SECRET_KEY: str
        Flask secret used for session signing.
    JWT_SECRET_KEY: str
        Key used by ``flask-jwt-extended`` to verify admin access tokens.
    ADMIN_ROLE: str
        Value of the ``role`` claim required by the admin endpoints.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    CORS_ORIGINS: str
        Comma-separated list of origins allowed to call the admin API.
    POOL_MAX_CONNECTIONS: int
        Number of handles pre-created by the connection pool.
    POOL_CONNECTION_TIMEOUT: float
        Seconds a caller waits for an idle handle before an ephemeral one is
        synthesized.
    POOL_RETRY_ATTEMPTS: int
        Attempts made by ``execute_with_retry`` before giving up.
    POOL_RETRY_DELAY: float
        Base backoff delay in seconds.
    POOL_BACKOFF_MULTIPLIER: float
        Exponential growth factor applied per attempt.
    QUERY_CACHE_TTL: float
        Seconds a cached listing result stays fresh.
    QUERY_CACHE_MAX_ENTRIES: int
        Entry count above which stale entries are swept.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    API_BASE_PREFIX = "/api"

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "CHANGE_ME_JWT")
    ADMIN_ROLE = os.getenv("ADMIN_ROLE", "admin")

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Connection pool & query cache
    POOL_MAX_CONNECTIONS = env_int("POOL_MAX_CONNECTIONS", 10)
    POOL_CONNECTION_TIMEOUT = env_float("POOL_CONNECTION_TIMEOUT", 5.0)
    POOL_RETRY_ATTEMPTS = env_int("POOL_RETRY_ATTEMPTS", 3)
    POOL_RETRY_DELAY = env_float("POOL_RETRY_DELAY", 1.0)
    POOL_BACKOFF_MULTIPLIER = env_float("POOL_BACKOFF_MULTIPLIER", 2.0)
    QUERY_CACHE_TTL = env_float("QUERY_CACHE_TTL", 15.0)
    QUERY_CACHE_MAX_ENTRIES = env_int("QUERY_CACHE_MAX_ENTRIES", 100)

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging & CORS
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")
    CORS_MAX_AGE = 600

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development."""

    DEBUG = env_bool("FLASK_DEBUG", True)
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Shrinks pool timeouts and retry delays so failing paths stay fast.
    - Disables the query cache TTL so each request observes fresh rows.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    JWT_SECRET_KEY = "testing-secret-key-with-enough-entropy-32b"
    PROPAGATE_EXCEPTIONS = True
    POOL_MAX_CONNECTIONS = 2
    POOL_CONNECTION_TIMEOUT = 0.5
    POOL_RETRY_DELAY = 0.0
    QUERY_CACHE_TTL = 0.0


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments."""

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)
