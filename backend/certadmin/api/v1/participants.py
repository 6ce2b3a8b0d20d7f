"""Participant listing endpoint."""

from __future__ import annotations

from flask import Blueprint

from certadmin.api.deps import require_admin, timing
from certadmin.api.v1._listing import run_listing
from certadmin.query import Resource

bp = Blueprint("participants", __name__)


@bp.get("")
@require_admin
@timing
def list_participants():
    """Return participants filtered, sorted and paginated from the query string."""

    return run_listing(Resource.PARTICIPANTS)
