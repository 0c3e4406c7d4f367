"""Authentication service for JWT and password handling."""

import logging
from datetime import UTC, datetime, timedelta

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from eventhub.config import get_settings
from eventhub.errors import ConflictError, InvalidCredentialError
from eventhub.identifiers import UserId
from eventhub.models.user import User

logger = logging.getLogger(__name__)

settings = get_settings()

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def normalize_email(email: str) -> str:
    """Lowercase and trim an email address for storage and lookup."""
    return email.strip().lower()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def create_access_token(
    user_id: int,
    email: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT access token."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.jwt_expiration_minutes)
    expire = datetime.now(UTC) + expires_delta
    to_encode = {
        "sub": str(user_id),
        "email": email,
        "exp": expire,
    }
    encoded_jwt = jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return encoded_jwt


def verify_credential(token: str) -> UserId:
    """Verify a bearer credential and return its subject.

    Raises InvalidCredentialError if the token is malformed, expired,
    signed with another key or carries no usable subject.
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError as e:
        raise InvalidCredentialError("Credential has expired") from e
    except JWTError as e:
        raise InvalidCredentialError() from e

    try:
        return UserId.from_claim(payload.get("sub"))
    except ValueError as e:
        raise InvalidCredentialError() from e


def authenticate_user(db: Session, email: str, password: str) -> User | None:
    """Authenticate a user by email and password."""
    user = get_user_by_email(db, email)
    if not user:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def get_user_by_email(db: Session, email: str) -> User | None:
    """Get a user by email."""
    return db.query(User).filter(User.email == normalize_email(email)).first()


def get_user(db: Session, user_id: UserId) -> User | None:
    """Get a user by id."""
    return db.query(User).filter(User.id == user_id.value).first()


def create_user(db: Session, email: str, password: str, name: str) -> User:
    """Create a new user.

    The password is hashed before the row is written; the plaintext is
    never stored.
    """
    email = normalize_email(email)
    if get_user_by_email(db, email):
        raise ConflictError("Email already registered")

    hashed_password = get_password_hash(password)
    user = User(email=email, password_hash=hashed_password, name=name.strip())
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent signup for the same email
        db.rollback()
        raise ConflictError("Email already registered") from e
    db.refresh(user)
    logger.info(f"Registered user {user.id}")
    return user
