"""SQLAlchemy models."""

from eventhub.models.event import Event
from eventhub.models.user import User

__all__ = [
    "User",
    "Event",
]
