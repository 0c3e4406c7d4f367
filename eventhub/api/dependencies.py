"""FastAPI dependencies for authentication, storage and media."""

import json
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from eventhub.config import get_settings
from eventhub.database import get_db
from eventhub.errors import DomainError
from eventhub.models.user import User
from eventhub.services.auth import get_user, verify_credential
from eventhub.services.events import DeletionScheduler, EventAccessController
from eventhub.services.media import MediaHost
from eventhub.services.media import get_media_host as build_media_host
from eventhub.stores.sqlalchemy_store import SqlAlchemyEventStore
from eventhub.tasks.media import schedule_media_deletion

security = HTTPBearer()
optional_bearer = HTTPBearer(auto_error=False)

# Field names accepted for clients that cannot set an Authorization header
CREDENTIAL_FIELDS = ("credential", "accessToken", "token")


def _pick_credential(values) -> str | None:
    for name in CREDENTIAL_FIELDS:
        value = values.get(name)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


async def _credential_from_body(request: Request) -> str | None:
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
        form = await request.form()
        return _pick_credential(form)
    if content_type.startswith("application/json"):
        body = await request.body()
        if not body:
            return None
        try:
            payload = json.loads(body)
        except ValueError:
            return None
        if isinstance(payload, dict):
            return _pick_credential(payload)
    return None


async def get_credential(
    request: Request,
    bearer: Annotated[HTTPAuthorizationCredentials | None, Depends(optional_bearer)],
) -> str | None:
    """Extract the caller's bearer credential, if any.

    The Authorization header wins; otherwise a body field, then a query
    field, is used.
    """
    if bearer is not None and bearer.credentials:
        return bearer.credentials
    credential = await _credential_from_body(request)
    if credential:
        return credential
    return _pick_credential(request.query_params)


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """Get the current authenticated user from JWT token."""
    try:
        user_id = verify_credential(credentials.credentials)
    except DomainError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    user = get_user(db, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


def get_media_host() -> MediaHost:
    """Get the configured media host."""
    return build_media_host()


def get_deletion_scheduler() -> DeletionScheduler:
    """Get the function used to queue media deletions."""
    return schedule_media_deletion


def get_event_controller(
    db: Annotated[Session, Depends(get_db)],
    media_host: Annotated[MediaHost, Depends(get_media_host)],
    schedule_deletion: Annotated[DeletionScheduler, Depends(get_deletion_scheduler)],
) -> EventAccessController:
    """Get event access controller with dependencies."""
    return EventAccessController(
        SqlAlchemyEventStore(db),
        media_host,
        schedule_deletion=schedule_deletion,
        max_upload_bytes=get_settings().max_upload_bytes,
    )
