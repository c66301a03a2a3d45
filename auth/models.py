"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and services do
the work; these own the domain shape.

Three shapes of "a user" exist on purpose:
  User     -- the stored record, including password_hash. Never leaves
              auth/store.py and auth/authenticator.py.
  Identity -- the public projection (no secret material). This is what the
              Authenticator returns and what a Session carries.
  Session  -- a handle bound to an Identity *copy* taken at login. Later
              changes to the User row (role, is_active) are not reflected in
              live sessions; admins revoke sessions explicitly instead.

Layer rule: no imports from api/ or projects/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Closed set of roles. Values match the stored/serialized form."""

    admin = "Admin"
    client = "Client"

    @classmethod
    def parse(cls, value: object) -> "Role | None":
        """Return the Role for an exact (case-sensitive) value, else None."""
        if isinstance(value, Role):
            return value
        for role in cls:
            if role.value == value:
                return role
        return None


@dataclass
class User:
    """Stored identity record.

    username and email are lower-cased before they reach the store; both are
    unique across active and inactive users. id is None until inserted.
    """

    username: str
    email: str
    password_hash: str
    role: Role
    id: int | None = None
    created_at: str | None = None
    updated_at: str | None = None
    is_active: bool = True

    def to_identity(self) -> "Identity":
        return Identity(
            id=self.id,
            username=self.username,
            email=self.email,
            role=self.role,
            created_at=self.created_at,
            is_active=self.is_active,
        )


@dataclass(frozen=True)
class Identity:
    """An authenticated user's public-facing record. Safe to serialize."""

    id: int
    username: str
    email: str
    role: Role
    created_at: str | None = None
    is_active: bool = True

    @property
    def is_admin(self) -> bool:
        return self.role is Role.admin


@dataclass
class Session:
    """Server-side session. handle is the opaque value handed to the client."""

    handle: str
    identity: Identity
    created_at: float  # epoch seconds
    expires_at: float  # epoch seconds

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at
