"""SQLAlchemy models package."""

from .base import Base
from .incident import Incident, SEVERITIES, SOURCES, STATUSES
from .timeline_event import TimelineEvent, TIMELINE_ACTIONS
from .alert_config import AlertConfig

__all__ = [
    "Base",
    "Incident",
    "TimelineEvent",
    "AlertConfig",
    "SEVERITIES",
    "STATUSES",
    "SOURCES",
    "TIMELINE_ACTIONS",
]
