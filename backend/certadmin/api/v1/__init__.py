"""API v1 blueprint package bundling versioned routes."""

from __future__ import annotations

from flask import Blueprint

API_VERSION = "v1"

# Import blueprints *only here* to keep imports localized and avoid cycles.
from .events import bp as events_bp  # noqa: E402
from .health import bp as health_bp  # noqa: E402
from .logs import bp as logs_bp  # noqa: E402
from .participants import bp as participants_bp  # noqa: E402

# Each tuple: (blueprint, url_prefix_relative_to_version)
REGISTRY: list[tuple[Blueprint, str]] = [
    (health_bp, ""),  # -> /api/v1/health
    (participants_bp, "/admin/participants"),
    (events_bp, "/admin/events"),
    (logs_bp, "/admin/logs"),
]
