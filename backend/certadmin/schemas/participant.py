"""Participant listing representation."""

from __future__ import annotations

from marshmallow import Schema, fields


class ParticipantSchema(Schema):
    """Participant row flattened with its event's name and code."""

    id = fields.String(required=True)
    event_id = fields.String(required=True)
    name = fields.String(required=True)
    email = fields.String(required=True)
    certificate_id = fields.String(required=True)
    revoked = fields.Boolean(required=True)
    revoke_reason = fields.String(allow_none=True)
    revoked_at = fields.DateTime(allow_none=True)
    created_at = fields.DateTime(required=True)
    event_name = fields.String(attribute="event.event_name")
    event_code = fields.String(attribute="event.event_code")
