from certadmin.models.activity_log import ActivityLog
from certadmin.models.event import Event
from certadmin.models.participant import Participant

__all__ = [
    "ActivityLog",
    "Event",
    "Participant",
]
