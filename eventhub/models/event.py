"""Event model."""

from sqlalchemy import Boolean, Column, Date, Float, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from eventhub.database import Base
from eventhub.models.mixins import TimestampMixin


class Event(Base, TimestampMixin):
    """A listed event. ``owner_id`` is set once at creation and never reassigned."""

    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(String, nullable=False)
    date = Column(Date, nullable=False, index=True)
    time = Column(String(20), nullable=False)  # wall-clock, e.g. "20:00"
    location = Column(String(500), nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    organizer = Column(String(255), nullable=False)
    category = Column(String(100), nullable=False, index=True)
    is_free = Column(Boolean, nullable=False, default=True)
    price = Column(Float, nullable=True)
    media_ref = Column(String(1000), nullable=True)  # public URL
    media_key = Column(String(500), nullable=True)  # storage key used for deletion

    # Relationships
    owner = relationship("User", backref="events")
