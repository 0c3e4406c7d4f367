"""Store interfaces (repository pattern).

Stores must be swappable and return domain models.
"""

from abc import ABC, abstractmethod
from typing import Any

from eventhub.domain import EventRecord
from eventhub.identifiers import EventId, UserId
from eventhub.schemas.event import EventFilter


class EventStore(ABC):
    """Interface for event persistence operations."""

    @abstractmethod
    def list_events(self, filters: EventFilter | None = None) -> list[EventRecord]:
        """Return events matching the filters in store-native order."""
        ...

    @abstractmethod
    def list_events_by_owner(self, owner: UserId) -> list[EventRecord]:
        """Return all events owned by a user."""
        ...

    @abstractmethod
    def get_event(self, event_id: EventId) -> EventRecord | None:
        """Return an event by ID, or None if not found."""
        ...

    @abstractmethod
    def add_event(self, owner: UserId, fields: dict[str, Any]) -> EventRecord:
        """Persist a new event and return it with its assigned ID."""
        ...

    @abstractmethod
    def update_event(self, event_id: EventId, fields: dict[str, Any]) -> EventRecord | None:
        """Apply field changes to an event, or return None if it does not exist."""
        ...

    @abstractmethod
    def delete_event(self, event_id: EventId) -> bool:
        """Remove an event. Returns False if it did not exist."""
        ...
