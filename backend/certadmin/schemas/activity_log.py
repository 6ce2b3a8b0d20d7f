"""Activity log representations."""

from __future__ import annotations

from marshmallow import Schema, fields


class ActivityLogSchema(Schema):
    """Audit entry; ``metadata`` is read from the ``meta`` attribute."""

    id = fields.String(required=True)
    action = fields.String(required=True)
    user_id = fields.String(allow_none=True)
    user_email = fields.String(allow_none=True)
    details = fields.String(allow_none=True)
    metadata = fields.Dict(attribute="meta", allow_none=True)
    created_at = fields.DateTime(required=True)


class ActionCountSchema(Schema):
    action = fields.String(required=True)
    count = fields.Integer(required=True)


class UserCountSchema(Schema):
    user = fields.String(required=True)
    count = fields.Integer(required=True)


class LogStatsSchema(Schema):
    """Aggregate view returned by ``GET /admin/logs/stats``."""

    totalLogs = fields.Integer(required=True, attribute="total_logs")
    recentLogs = fields.Integer(required=True, attribute="recent_logs")
    topActions = fields.List(fields.Nested(ActionCountSchema), attribute="top_actions")
    topUsers = fields.List(fields.Nested(UserCountSchema), attribute="top_users")
    dateRange = fields.Dict(attribute="date_range")
