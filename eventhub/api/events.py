"""Event API endpoints."""

import json
from datetime import date as Date
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Request, status
from starlette.datastructures import UploadFile

from eventhub.api.dependencies import CREDENTIAL_FIELDS, get_credential, get_event_controller
from eventhub.domain import MediaUpload
from eventhub.errors import ValidationFailedError
from eventhub.identifiers import EventId
from eventhub.schemas.event import (
    EventDeleteResponse,
    EventDetailResponse,
    EventFilter,
    EventPublicResponse,
    EventResponse,
    parse_event_create,
    parse_event_filter,
    parse_event_update,
)
from eventhub.services.events import EventAccessController

router = APIRouter(prefix="/events", tags=["events"])

IMAGE_FIELD = "image"

EventPayload = tuple[dict[str, Any], MediaUpload | None]


def event_filters(
    query: str | None = Query(default=None, description="Text to find in title or description"),
    category: str | None = Query(default=None),
    location: str | None = Query(default=None, description="Substring of the location"),
    date: Date | None = Query(default=None, description="Only events on or after this date"),
    min_price: float | None = Query(default=None, alias="minPrice", ge=0),
    max_price: float | None = Query(default=None, alias="maxPrice", ge=0),
    is_free: bool | None = Query(default=None, alias="isFree"),
) -> EventFilter:
    """Collect search query parameters into an EventFilter."""
    return parse_event_filter(
        {
            "query": query,
            "category": category,
            "location": location,
            "date": date,
            "min_price": min_price,
            "max_price": max_price,
            "is_free": is_free,
        }
    )


async def read_event_payload(request: Request) -> EventPayload:
    """Read event fields and an optional image from a JSON or multipart body.

    Runs as an async dependency so the route itself can stay sync and run in
    the threadpool, away from the event loop.
    """
    content_type = request.headers.get("content-type", "")
    upload = None

    if content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
        form = await request.form()
        payload: dict[str, Any] = {}
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                if key == IMAGE_FIELD and value.filename:
                    upload = MediaUpload(
                        filename=value.filename,
                        content_type=value.content_type,
                        data=await value.read(),
                    )
                continue
            payload[key] = value
    else:
        body = await request.body()
        try:
            payload = json.loads(body) if body else {}
        except ValueError as e:
            raise ValidationFailedError("Request body is not valid JSON") from e
        if not isinstance(payload, dict):
            raise ValidationFailedError("Request body must be a JSON object")

    # Empty inputs mean "not provided"
    payload = {
        key: value
        for key, value in payload.items()
        if key not in CREDENTIAL_FIELDS and value != ""
    }
    return payload, upload


@router.get("", response_model=list[EventPublicResponse])
def list_events(
    filters: Annotated[EventFilter, Depends(event_filters)],
    controller: Annotated[EventAccessController, Depends(get_event_controller)],
):
    """Get all events, optionally filtered."""
    return controller.list_events(filters)


@router.get("/search", response_model=list[EventPublicResponse])
def search_events(
    filters: Annotated[EventFilter, Depends(event_filters)],
    controller: Annotated[EventAccessController, Depends(get_event_controller)],
):
    """Search events by text, category, location, date and price."""
    return controller.list_events(filters)


@router.get("/filtered", response_model=list[EventResponse])
def list_my_events(
    credential: Annotated[str | None, Depends(get_credential)],
    controller: Annotated[EventAccessController, Depends(get_event_controller)],
):
    """Get the events created by the caller."""
    return controller.list_owned_events(credential)


@router.get(
    "/{event_id}",
    response_model=None,
    responses={200: {"model": EventDetailResponse}},
)
def get_event(
    event_id: int,
    credential: Annotated[str | None, Depends(get_credential)],
    controller: Annotated[EventAccessController, Depends(get_event_controller)],
) -> EventPublicResponse | EventDetailResponse:
    """Get a single event.

    Authenticated callers also receive the owner reference and whether
    they own the event.
    """
    return controller.get_event(EventId(event_id), credential)


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
def create_event(
    body: Annotated[EventPayload, Depends(read_event_payload)],
    credential: Annotated[str | None, Depends(get_credential)],
    controller: Annotated[EventAccessController, Depends(get_event_controller)],
):
    """Create a new event, optionally with an image."""
    payload, upload = body
    # A missing or bad credential is reported before field errors
    controller.authenticate(credential)
    data = parse_event_create(payload)
    return controller.create_event(data, credential, upload)


@router.patch("/{event_id}", response_model=EventResponse)
def update_event(
    event_id: int,
    body: Annotated[EventPayload, Depends(read_event_payload)],
    credential: Annotated[str | None, Depends(get_credential)],
    controller: Annotated[EventAccessController, Depends(get_event_controller)],
):
    """Update an event (owner only)."""
    payload, upload = body
    # A missing or bad credential is reported before field errors
    controller.authenticate(credential)
    data = parse_event_update(payload)
    return controller.update_event(EventId(event_id), data, credential, upload)


@router.delete("/{event_id}", response_model=EventDeleteResponse)
def delete_event(
    event_id: int,
    credential: Annotated[str | None, Depends(get_credential)],
    controller: Annotated[EventAccessController, Depends(get_event_controller)],
):
    """Delete an event (owner only)."""
    return controller.delete_event(EventId(event_id), credential)
