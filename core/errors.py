"""
core/errors.py -- Error taxonomy shared by every layer.

Each exception carries a stable machine-readable code and the HTTP status the
API layer maps it to. Domain code raises these; api/main.py has a single
exception handler that renders them into the common error envelope, so route
handlers never build error responses by hand.

Categories:
  caller input was wrong     -- ValidationError
  uniqueness violated        -- DuplicateUser, DuplicateKey
  who are you?               -- Unauthenticated
  you may not                -- Forbidden
  no such thing              -- NotFound
  redundant client action    -- AlreadyGranted, DuplicatePending, RequestAlreadyResolved
  internal, fatal-for-request -- HashingFailure
  store fault, try again     -- OperationFailed

Layer rule: core/ is the kernel. No imports from api/, auth/, or projects/.
"""

from __future__ import annotations

from typing import Optional


class AccessControlError(Exception):
    """Base class for errors that map onto a structured HTTP response."""

    status_code: int = 400
    code: str = "error"
    default_message: str = "Request failed."

    def __init__(self, message: Optional[str] = None, *, detail: Optional[str] = None) -> None:
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)


class ValidationError(AccessControlError):
    status_code = 400
    code = "validation_error"
    default_message = "Invalid input."


class DuplicateUser(AccessControlError):
    """Username or email already registered (compared case-insensitively)."""

    status_code = 409
    code = "duplicate_user"
    default_message = "A user with that username or email already exists."


class DuplicateKey(AccessControlError):
    """A store-level unique constraint rejected a write.

    Raised when a concurrent request slipped past an application-level
    pre-check. Callers translate it into the domain-specific error.
    """

    status_code = 409
    code = "duplicate_key"
    default_message = "Record already exists."


class Unauthenticated(AccessControlError):
    status_code = 401
    code = "unauthorized"
    default_message = "Unauthorized. Please login to continue."


class Forbidden(AccessControlError):
    status_code = 403
    code = "forbidden"
    default_message = "Forbidden."


class NotFound(AccessControlError):
    status_code = 404
    code = "not_found"
    default_message = "Not found."


class AlreadyGranted(AccessControlError):
    status_code = 409
    code = "already_granted"
    default_message = "You already have access to this project."


class DuplicatePending(AccessControlError):
    status_code = 409
    code = "duplicate_pending"
    default_message = "You already have a pending request for this project."


class RequestAlreadyResolved(AccessControlError):
    """The request was resolved the other way; terminal states never flip."""

    status_code = 409
    code = "already_resolved"
    default_message = "Access request has already been resolved."


class HashingFailure(AccessControlError):
    status_code = 500
    code = "hashing_failure"
    default_message = "Could not process credentials. Please try again."


class OperationFailed(AccessControlError):
    """The store was unreachable or failed transiently."""

    status_code = 503
    code = "operation_failed"
    default_message = "Operation failed. Please try again later."


__all__ = [
    "AccessControlError",
    "ValidationError",
    "DuplicateUser",
    "DuplicateKey",
    "Unauthenticated",
    "Forbidden",
    "NotFound",
    "AlreadyGranted",
    "DuplicatePending",
    "RequestAlreadyResolved",
    "HashingFailure",
    "OperationFailed",
]
