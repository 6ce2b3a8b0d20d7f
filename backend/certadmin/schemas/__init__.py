from certadmin.schemas.activity_log import ActivityLogSchema, LogStatsSchema
from certadmin.schemas.common import PaginationMetaSchema, QueryErrorSchema
from certadmin.schemas.event import EventSchema
from certadmin.schemas.participant import ParticipantSchema

__all__ = [
    "ActivityLogSchema",
    "EventSchema",
    "LogStatsSchema",
    "PaginationMetaSchema",
    "ParticipantSchema",
    "QueryErrorSchema",
]
