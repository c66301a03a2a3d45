"""
projects/models.py -- Domain dataclasses for projects and access requests.

These are pure data containers with zero logic. The request lifecycle
(pending -> approved | denied) is enforced in projects/access.py and backed
by constraints in projects/store.py.

id is None before the record is written to the database.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class RequestStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    denied = "denied"


@dataclass
class Project:
    """A resource guarded by an access list.

    accessible_by holds only explicitly granted Client ids. Admins see every
    project without appearing here.
    """

    name: str
    description: str
    created_by: int
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
    accessible_by: set[int] = field(default_factory=set)


@dataclass
class AccessRequest:
    """A Client's request to be added to a project's access list.

    user_name, user_email and project_name are denormalized copies taken at
    request time so the admin queue renders without extra lookups.
    """

    user_id: int
    user_name: str
    user_email: str
    project_id: int
    project_name: str
    status: RequestStatus = RequestStatus.pending
    id: Optional[int] = None
    requested_at: str = ""  # ISO 8601
    resolved_at: Optional[str] = None
    resolved_by: Optional[int] = None


@dataclass
class AvailableProject:
    """A project the client cannot see yet, flagged if a request is pending."""

    project: Project
    request_pending: bool
