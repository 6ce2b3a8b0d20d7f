"""Flask application factory for the certificate admin API."""

from __future__ import annotations

from typing import Any

from flask import Flask

from certadmin import cli
from certadmin.api import init_app as init_api
from certadmin.core import cors, errors, extensions, logger
from certadmin.core.config import CONFIG_MAP, BaseConfig, get_config


def _resolve_config(config: str | type[BaseConfig] | None) -> type[BaseConfig]:
    if config is None:
        return get_config()
    if isinstance(config, str):
        try:
            return CONFIG_MAP[config.strip().lower()]
        except KeyError:
            raise ValueError(
                f"Unknown configuration {config!r}; expected one of {sorted(CONFIG_MAP)}"
            ) from None
    return config


def create_app(config: str | type[BaseConfig] | None = None, **overrides: Any) -> Flask:
    """
    Build the admin API application.

    :param config: Config class or its ``CONFIG_MAP`` name; ``APP_ENV`` decides when ``None``.
    :param overrides: Settings applied on top of the config class,
        e.g. ``POOL_MAX_CONNECTIONS=4``.
    :returns: Application with the session pool and query cache installed.
    :rtype: flask.Flask
    """
    app = Flask(__name__)
    app.config.from_object(_resolve_config(config))
    app.config.update(overrides)
    logger.configure_logging(app.config["LOG_LEVEL"])

    # The pool binds to the engine, so extensions go before anything serving requests
    for init in (
        extensions.init_app,
        logger.init_app,
        cors.init_app,
        init_api,
        errors.init_app,
        cli.init_app,
    ):
        init(app)
    return app
