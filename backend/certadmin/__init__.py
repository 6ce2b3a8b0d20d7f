"""Expose the application factory at package level.

``from certadmin import create_app`` is the entry point used by the Flask CLI
(``FLASK_APP=certadmin``) and by the test suite.
"""

from __future__ import annotations

from .factory import create_app

__all__ = ["create_app"]
