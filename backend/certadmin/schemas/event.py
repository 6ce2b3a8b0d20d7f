"""Event listing representation."""

from __future__ import annotations

from marshmallow import Schema, fields


class EventSchema(Schema):
    """Event row; counts and ``status`` are attached after dumping."""

    id = fields.String(required=True)
    event_name = fields.String(required=True)
    event_code = fields.String(required=True)
    date = fields.Date(required=True)
    description = fields.String(allow_none=True)
    tag = fields.String(allow_none=True)
    created_by = fields.String(required=True)
    google_sheet_url = fields.String(allow_none=True)
    sync_status = fields.String(required=True)
    last_synced_at = fields.DateTime(allow_none=True)
    created_at = fields.DateTime(required=True)
