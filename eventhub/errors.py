"""Domain error codes for event access control."""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_CREDENTIAL = "INVALID_CREDENTIAL"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    CONFLICT = "CONFLICT"


@dataclass(eq=False)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class UnauthorizedError(DomainError):
    """Raised when a required credential is missing."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(code=ErrorCode.UNAUTHORIZED, message=message)


class InvalidCredentialError(DomainError):
    """Raised when a credential is malformed, expired or fails verification."""

    def __init__(self, message: str = "Invalid or expired credential") -> None:
        super().__init__(code=ErrorCode.INVALID_CREDENTIAL, message=message)


class ForbiddenError(DomainError):
    """Raised when a verified caller does not own the target event."""

    def __init__(self, message: str = "You do not have permission to modify this event") -> None:
        super().__init__(code=ErrorCode.FORBIDDEN, message=message)


class NotFoundError(DomainError):
    """Raised when an event or user does not exist."""

    def __init__(self, resource: str = "Event") -> None:
        super().__init__(code=ErrorCode.NOT_FOUND, message=f"{resource} not found")


class ValidationFailedError(DomainError):
    """Raised when input is malformed or breaks the pricing rules."""

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.VALIDATION_FAILED, message=message)


class ConflictError(DomainError):
    """Raised when a unique field already exists."""

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.CONFLICT, message=message)
