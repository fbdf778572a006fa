"""UTC clock helpers.

Timestamps are stored as naive UTC datetimes (SQLite has no timezone type),
so every writer stamps through ``utcnow`` and every serializer through
``to_iso``.
"""

from datetime import datetime, timezone
from typing import Callable, Optional

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Current UTC time without tzinfo."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None
