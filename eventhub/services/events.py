"""Event access control.

Every operation on events goes through ``EventAccessController``. It
resolves the caller from an optional bearer credential, checks ownership
against the stored owner reference, and keeps media references in step
with event records.
"""

import logging
from collections.abc import Callable
from typing import Any

from eventhub.domain import EventRecord, MediaUpload, check_pricing
from eventhub.errors import (
    DomainError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
)
from eventhub.identifiers import EventId, UserId
from eventhub.schemas.event import (
    EventCreate,
    EventDeleteResponse,
    EventDetailResponse,
    EventFilter,
    EventPublicResponse,
    EventResponse,
    EventUpdate,
)
from eventhub.services.auth import verify_credential
from eventhub.services.media import MediaHost, validate_image
from eventhub.stores.interfaces import EventStore

logger = logging.getLogger(__name__)

CredentialVerifier = Callable[[str], UserId]
DeletionScheduler = Callable[[str], Any]


class EventAccessController:
    """Authorizes and performs list/read/create/update/delete on events."""

    def __init__(
        self,
        store: EventStore,
        media_host: MediaHost,
        verifier: CredentialVerifier = verify_credential,
        schedule_deletion: DeletionScheduler | None = None,
        max_upload_bytes: int | None = None,
    ):
        self.store = store
        self.media_host = media_host
        self.verifier = verifier
        self.schedule_deletion = schedule_deletion or media_host.delete
        self.max_upload_bytes = max_upload_bytes

    # --- Identity ---

    def authenticate(self, credential: str | None) -> UserId:
        """Resolve the caller, raising Unauthorized or InvalidCredential."""
        if not credential:
            raise UnauthorizedError()
        return self.verifier(credential)

    def try_authenticate(self, credential: str | None) -> UserId | None:
        """Resolve the caller if possible; any failure means anonymous."""
        if not credential:
            return None
        try:
            return self.verifier(credential)
        except DomainError as e:
            logger.debug(f"Treating caller as anonymous: {e}")
            return None

    def _load(self, event_id: EventId) -> EventRecord:
        record = self.store.get_event(event_id)
        if record is None:
            raise NotFoundError("Event")
        return record

    def _authorize_owner(self, event_id: EventId, credential: str | None) -> EventRecord:
        caller = self.authenticate(credential)
        record = self._load(event_id)
        if not record.is_owned_by(caller):
            logger.info(f"User {caller.value} denied access to event {event_id.value}")
            raise ForbiddenError()
        return record

    # --- Media ---

    def _store_media(self, upload: MediaUpload) -> dict[str, str]:
        validate_image(upload, self.max_upload_bytes)
        stored = self.media_host.store(upload)
        return {"media_ref": stored.url, "media_key": stored.key}

    def _discard_media(self, key: str | None) -> None:
        """Schedule deletion of a stored image. Failures are logged, never raised."""
        if not key:
            return
        try:
            self.schedule_deletion(key)
        except Exception as e:
            logger.warning(f"Failed to schedule deletion of media {key}: {e}")

    # --- Operations ---

    def list_events(self, filters: EventFilter | None = None) -> list[EventPublicResponse]:
        """List events matching the filters. No credential needed."""
        records = self.store.list_events(filters)
        return [EventPublicResponse.from_record(record) for record in records]

    def list_owned_events(self, credential: str | None) -> list[EventResponse]:
        """List the events owned by the caller."""
        caller = self.authenticate(credential)
        records = self.store.list_events_by_owner(caller)
        return [EventResponse.from_record(record) for record in records]

    def get_event(
        self,
        event_id: EventId,
        credential: str | None = None,
    ) -> EventPublicResponse | EventDetailResponse:
        """Read one event.

        A verified caller gets the owner reference and an ``isOwner`` flag.
        Anyone else, including callers whose credential fails verification,
        gets the anonymous view.
        """
        record = self._load(event_id)
        caller = self.try_authenticate(credential)
        if caller is None:
            return EventPublicResponse.from_record(record)
        return EventDetailResponse.from_record(record, is_owner=record.is_owned_by(caller))

    def create_event(
        self,
        data: EventCreate,
        credential: str | None,
        upload: MediaUpload | None = None,
    ) -> EventResponse:
        """Create an event owned by the caller."""
        caller = self.authenticate(credential)
        fields = data.model_dump()
        check_pricing(fields["is_free"], fields["price"])

        if upload is not None:
            fields.update(self._store_media(upload))

        record = self.store.add_event(caller, fields)
        logger.info(f"User {caller.value} created event {record.id.value}")
        return EventResponse.from_record(record)

    def update_event(
        self,
        event_id: EventId,
        data: EventUpdate,
        credential: str | None,
        upload: MediaUpload | None = None,
    ) -> EventResponse:
        """Apply a partial update. Only the owner may update."""
        record = self._authorize_owner(event_id, credential)
        changes = data.changes()

        if data.touches_pricing:
            is_free = changes.get("is_free", record.is_free)
            if "price" in changes:
                price = changes["price"]
            else:
                # Switching to free drops the old price
                price = None if is_free else record.price
            check_pricing(is_free, price)
            changes["is_free"] = is_free
            changes["price"] = price

        old_media_key = None
        if upload is not None:
            changes.update(self._store_media(upload))
            old_media_key = record.media_key

        updated = self.store.update_event(event_id, changes)
        if updated is None:
            # Deleted between the ownership check and the write
            self._discard_media(changes.get("media_key"))
            raise NotFoundError("Event")

        if old_media_key and old_media_key != updated.media_key:
            self._discard_media(old_media_key)

        logger.info(f"Updated event {event_id.value}: {sorted(changes)}")
        return EventResponse.from_record(updated)

    def delete_event(self, event_id: EventId, credential: str | None) -> EventDeleteResponse:
        """Delete an event. Only the owner may delete."""
        record = self._authorize_owner(event_id, credential)
        if not self.store.delete_event(event_id):
            raise NotFoundError("Event")

        self._discard_media(record.media_key)
        logger.info(f"Deleted event {event_id.value}")
        return EventDeleteResponse(message="Event deleted", id=event_id.value)
