"""Schemas shared by every listing response."""

from __future__ import annotations

from marshmallow import Schema, fields


class QueryErrorSchema(Schema):
    """Field-level query problem as reported in ``400`` bodies."""

    code = fields.String(required=True)
    field = fields.String(allow_none=True)
    message = fields.String(required=True)
    value = fields.Raw(allow_none=True)


class PaginationMetaSchema(Schema):
    page = fields.Integer(required=True)
    limit = fields.Integer(required=True)
    total = fields.Integer(required=True)
    totalPages = fields.Integer(required=True, attribute="total_pages")
    hasNext = fields.Boolean(required=True, attribute="has_next")
    hasPrev = fields.Boolean(required=True, attribute="has_prev")
