"""Pydantic schemas for API requests and responses."""

from eventhub.schemas.auth import AuthResponse, UserLogin, UserResponse, UserSignup
from eventhub.schemas.event import (
    EventCreate,
    EventDeleteResponse,
    EventDetailResponse,
    EventFilter,
    EventPublicResponse,
    EventResponse,
    EventUpdate,
)

__all__ = [
    "UserSignup",
    "UserLogin",
    "AuthResponse",
    "UserResponse",
    "EventCreate",
    "EventUpdate",
    "EventFilter",
    "EventPublicResponse",
    "EventResponse",
    "EventDetailResponse",
    "EventDeleteResponse",
]
