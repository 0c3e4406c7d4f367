"""Event schemas."""

from datetime import date as Date
from datetime import datetime
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from eventhub.domain import EventRecord
from eventhub.errors import ValidationFailedError

# Fields that may be omitted from an update but never cleared
NON_NULLABLE_FIELDS = (
    "title",
    "description",
    "date",
    "time",
    "location",
    "organizer",
    "category",
    "is_free",
)


class CamelModel(BaseModel):
    """Base schema that speaks camelCase on the wire and accepts snake_case too."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EventCreate(CamelModel):
    """Create a new event."""

    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    date: Date
    time: str = Field(..., min_length=1, max_length=20)
    location: str = Field(..., min_length=1, max_length=500)
    latitude: float | None = Field(None, ge=-90, le=90, allow_inf_nan=False)
    longitude: float | None = Field(None, ge=-180, le=180, allow_inf_nan=False)
    organizer: str = Field(..., min_length=1, max_length=255)
    # Older clients send the category as 'type'
    category: str = Field(
        ...,
        min_length=1,
        max_length=100,
        validation_alias=AliasChoices("category", "type"),
    )
    is_free: bool = True
    price: float | None = Field(None, ge=0, allow_inf_nan=False)

    @model_validator(mode="after")
    def validate_pricing(self) -> "EventCreate":
        if self.is_free and self.price is not None:
            raise ValueError("Free events cannot have a price")
        if not self.is_free and self.price is None:
            raise ValueError("Paid events require a price")
        return self


class EventUpdate(CamelModel):
    """Partially update an event. Omitted fields keep their current value."""

    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, min_length=1)
    date: Date | None = None
    time: str | None = Field(None, min_length=1, max_length=20)
    location: str | None = Field(None, min_length=1, max_length=500)
    latitude: float | None = Field(None, ge=-90, le=90, allow_inf_nan=False)
    longitude: float | None = Field(None, ge=-180, le=180, allow_inf_nan=False)
    organizer: str | None = Field(None, min_length=1, max_length=255)
    category: str | None = Field(
        None,
        min_length=1,
        max_length=100,
        validation_alias=AliasChoices("category", "type"),
    )
    is_free: bool | None = None
    price: float | None = Field(None, ge=0, allow_inf_nan=False)

    @model_validator(mode="after")
    def reject_cleared_required_fields(self) -> "EventUpdate":
        cleared = [
            name
            for name in NON_NULLABLE_FIELDS
            if name in self.model_fields_set and getattr(self, name) is None
        ]
        if cleared:
            raise ValueError(f"Fields cannot be null: {', '.join(cleared)}")
        return self

    def changes(self) -> dict[str, Any]:
        """Return only the fields the caller actually sent."""
        return self.model_dump(exclude_unset=True)

    @property
    def touches_pricing(self) -> bool:
        return bool({"is_free", "price"} & self.model_fields_set)


class EventFilter(CamelModel):
    """Search criteria for listing events."""

    query: str | None = None
    category: str | None = None
    location: str | None = None
    date: Date | None = None
    min_price: float | None = Field(None, ge=0, allow_inf_nan=False)
    max_price: float | None = Field(None, ge=0, allow_inf_nan=False)
    is_free: bool | None = None

    @field_validator("query", "category", "location")
    @classmethod
    def blank_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        return value or None

    @model_validator(mode="after")
    def validate_price_range(self) -> "EventFilter":
        if (
            self.min_price is not None
            and self.max_price is not None
            and self.min_price > self.max_price
        ):
            raise ValueError("minPrice cannot be greater than maxPrice")
        return self


class EventPublicResponse(CamelModel):
    """Event as shown to anonymous callers."""

    id: int
    title: str
    description: str
    date: Date
    time: str
    location: str
    latitude: float | None = None
    longitude: float | None = None
    organizer: str
    category: str
    is_free: bool
    price: float | None = None
    media_ref: str | None = None

    @classmethod
    def from_record(cls, record: EventRecord, **extra: Any) -> "EventPublicResponse":
        return cls(
            id=record.id.value,
            title=record.title,
            description=record.description,
            date=record.date,
            time=record.time,
            location=record.location,
            latitude=record.latitude,
            longitude=record.longitude,
            organizer=record.organizer,
            category=record.category,
            is_free=record.is_free,
            price=record.price,
            media_ref=record.media_ref,
            **extra,
        )


class EventResponse(EventPublicResponse):
    """Event as shown to authenticated callers, including the owner reference."""

    owner: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_record(cls, record: EventRecord, **extra: Any) -> "EventResponse":
        return super().from_record(
            record,
            owner=record.owner.value,
            created_at=record.created_at,
            updated_at=record.updated_at,
            **extra,
        )


class EventDetailResponse(EventResponse):
    """Single event read by a verified caller."""

    is_owner: bool


class EventDeleteResponse(BaseModel):
    """Confirmation returned after deleting an event."""

    message: str
    id: int


def describe_errors(errors) -> str:
    """Flatten pydantic error entries into one readable message."""
    messages = []
    for error in errors:
        location = ".".join(str(part) for part in error["loc"] if part != "body")
        message = error["msg"].removeprefix("Value error, ")
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages)


def parse_event_create(payload: dict[str, Any]) -> EventCreate:
    """Validate a raw create payload, raising ValidationFailedError on bad input."""
    try:
        return EventCreate.model_validate(payload)
    except ValidationError as e:
        raise ValidationFailedError(describe_errors(e.errors())) from e


def parse_event_update(payload: dict[str, Any]) -> EventUpdate:
    """Validate a raw update payload, raising ValidationFailedError on bad input."""
    try:
        return EventUpdate.model_validate(payload)
    except ValidationError as e:
        raise ValidationFailedError(describe_errors(e.errors())) from e


def parse_event_filter(criteria: dict[str, Any]) -> EventFilter:
    """Validate search criteria, raising ValidationFailedError on bad input."""
    try:
        return EventFilter.model_validate(criteria)
    except ValidationError as e:
        raise ValidationFailedError(describe_errors(e.errors())) from e
