from certadmin.repositories.activity_log import ActivityLogRepository
from certadmin.repositories.base import ListingRepository
from certadmin.repositories.event import EventRepository
from certadmin.repositories.participant import ParticipantRepository

__all__ = [
    "ActivityLogRepository",
    "EventRepository",
    "ListingRepository",
    "ParticipantRepository",
]
