"""SQLAlchemy implementation of the EventStore."""

from typing import Any

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session

from eventhub.domain import EventRecord
from eventhub.identifiers import EventId, UserId
from eventhub.models.event import Event
from eventhub.schemas.event import EventFilter
from eventhub.stores.interfaces import EventStore

# Columns a caller may change after creation
MUTABLE_COLUMNS = frozenset(
    {
        "title",
        "description",
        "date",
        "time",
        "location",
        "latitude",
        "longitude",
        "organizer",
        "category",
        "is_free",
        "price",
        "media_ref",
        "media_key",
    }
)


def to_record(event: Event) -> EventRecord:
    """Convert an ORM row to a domain record."""
    return EventRecord(
        id=EventId(event.id),
        owner=UserId(event.owner_id),
        title=event.title,
        description=event.description,
        date=event.date,
        time=event.time,
        location=event.location,
        organizer=event.organizer,
        category=event.category,
        is_free=event.is_free,
        price=event.price,
        latitude=event.latitude,
        longitude=event.longitude,
        media_ref=event.media_ref,
        media_key=event.media_key,
        created_at=event.created_at,
        updated_at=event.updated_at,
    )


def apply_filters(query: Query, filters: EventFilter) -> Query:
    """Narrow an Event query by search criteria."""
    # autoescape so '%' and '_' in user text match literally
    if filters.query:
        query = query.filter(
            or_(
                Event.title.icontains(filters.query, autoescape=True),
                Event.description.icontains(filters.query, autoescape=True),
            )
        )
    if filters.category:
        query = query.filter(func.lower(Event.category) == filters.category.lower())
    if filters.location:
        query = query.filter(Event.location.icontains(filters.location, autoescape=True))
    if filters.date:
        query = query.filter(Event.date >= filters.date)
    if filters.is_free is True:
        query = query.filter(Event.is_free.is_(True), Event.price.is_(None))
    elif filters.is_free is False:
        query = query.filter(Event.is_free.is_(False))
    # Free events compare as price 0
    effective_price = func.coalesce(Event.price, 0)
    if filters.min_price is not None:
        query = query.filter(effective_price >= filters.min_price)
    if filters.max_price is not None:
        query = query.filter(effective_price <= filters.max_price)
    return query


class SqlAlchemyEventStore(EventStore):
    """Relational event store backed by a SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def _get_row(self, event_id: EventId) -> Event | None:
        return self.db.query(Event).filter(Event.id == event_id.value).first()

    def list_events(self, filters: EventFilter | None = None) -> list[EventRecord]:
        query = self.db.query(Event)
        if filters is not None:
            query = apply_filters(query, filters)
        return [to_record(event) for event in query.all()]

    def list_events_by_owner(self, owner: UserId) -> list[EventRecord]:
        events = self.db.query(Event).filter(Event.owner_id == owner.value).all()
        return [to_record(event) for event in events]

    def get_event(self, event_id: EventId) -> EventRecord | None:
        event = self._get_row(event_id)
        if event is None:
            return None
        return to_record(event)

    def add_event(self, owner: UserId, fields: dict[str, Any]) -> EventRecord:
        values = {name: value for name, value in fields.items() if name in MUTABLE_COLUMNS}
        event = Event(owner_id=owner.value, **values)
        self.db.add(event)
        self.db.commit()
        self.db.refresh(event)
        return to_record(event)

    def update_event(self, event_id: EventId, fields: dict[str, Any]) -> EventRecord | None:
        event = self._get_row(event_id)
        if event is None:
            return None
        for name, value in fields.items():
            if name in MUTABLE_COLUMNS:
                setattr(event, name, value)
        self.db.commit()
        self.db.refresh(event)
        return to_record(event)

    def delete_event(self, event_id: EventId) -> bool:
        event = self._get_row(event_id)
        if event is None:
            return False
        self.db.delete(event)
        self.db.commit()
        return True
