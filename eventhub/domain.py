"""Domain models representing persisted state.

These are plain objects with no API input rules. SQLAlchemy models are in
eventhub/models (persistence layer); stores convert between the two.
"""

import math
from dataclasses import dataclass
from datetime import date, datetime

from eventhub.errors import ValidationFailedError
from eventhub.identifiers import EventId, UserId


@dataclass(frozen=True)
class EventRecord:
    """Domain representation of an Event."""

    id: EventId
    owner: UserId
    title: str
    description: str
    date: date
    time: str
    location: str
    organizer: str
    category: str
    is_free: bool = True
    price: float | None = None
    latitude: float | None = None
    longitude: float | None = None
    media_ref: str | None = None
    media_key: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def is_owned_by(self, user_id: UserId) -> bool:
        return self.owner == user_id


@dataclass(frozen=True)
class MediaUpload:
    """An uploaded image waiting to be handed to the media host."""

    filename: str
    content_type: str | None
    data: bytes


@dataclass(frozen=True)
class StoredMedia:
    """Where the media host put an image.

    ``url`` is what clients see; ``key`` is what the host needs to delete it.
    """

    url: str
    key: str


def check_pricing(is_free: bool, price: float | None) -> None:
    """Enforce that free events carry no price and paid events carry one."""
    if is_free and price is not None:
        raise ValidationFailedError("Free events cannot have a price")
    if not is_free and price is None:
        raise ValidationFailedError("Paid events require a price")
    if price is not None and not math.isfinite(price):
        raise ValidationFailedError("Price must be a finite number")
    if price is not None and price < 0:
        raise ValidationFailedError("Price cannot be negative")
