"""Event persistence."""

from eventhub.stores.interfaces import EventStore
from eventhub.stores.sqlalchemy_store import SqlAlchemyEventStore

__all__ = ["EventStore", "SqlAlchemyEventStore"]
