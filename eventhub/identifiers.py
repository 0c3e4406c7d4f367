"""Canonical identifier types.

Ownership decisions compare these wrappers and nothing else, so an
integer primary key and a token claim string can never be confused.
"""

from dataclasses import dataclass
from typing import Self


@dataclass(frozen=True)
class UserId:
    """Unique identifier for a User."""

    value: int

    @classmethod
    def from_claim(cls, claim: object) -> Self:
        """Parse the ``sub`` claim of a credential.

        Raises ValueError when the claim is not a canonical decimal id.
        """
        if isinstance(claim, bool) or not isinstance(claim, str | int):
            raise ValueError("Subject claim must be a string or integer")
        text = str(claim)
        if not text.isdigit() or text != str(int(text)):
            raise ValueError("Subject claim is not a valid user id")
        return cls(value=int(text))

    def to_claim(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class EventId:
    """Unique identifier for an Event."""

    value: int
