"""Service layer: listing queries and activity statistics."""

from certadmin.services._shared.errors import (
    QueryExecutionError,
    QueryValidationError,
    ServiceError,
)
from certadmin.services.activity_stats import ActivityStatsService
from certadmin.services.query_engine import (
    PageInfo,
    QueryEngine,
    ResultEnvelope,
    derive_event_status,
)

__all__ = [
    "ActivityStatsService",
    "PageInfo",
    "QueryEngine",
    "QueryExecutionError",
    "QueryValidationError",
    "ResultEnvelope",
    "ServiceError",
    "derive_event_status",
]
