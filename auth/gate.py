"""
auth/gate.py -- Authorization rules, independent of any web framework.

Roles are compared by strict equality. There is no hierarchy: an Admin does
not pass a check that requires Client (only Clients may request access, for
example). The one place Admins get more is project visibility, and that is
spelled out in can_view_project() rather than hidden in the ACL -- Admins
are never written into accessible_by.

auth/dependencies.py wraps these for FastAPI; projects/access.py calls them
directly so the engine stays safe when used without HTTP.

Layer rule: no imports from api/ or projects/.
"""

from __future__ import annotations

from collections.abc import Collection

from auth.models import Identity, Role
from core.errors import Forbidden, Unauthenticated

_ROLE_DENIED_MESSAGES: dict[Role, str] = {
    Role.admin: "Forbidden. Admin access required.",
    Role.client: "Forbidden. Only clients can perform this action.",
}


def require_authenticated(identity: Identity | None) -> Identity:
    if identity is None:
        raise Unauthenticated()
    return identity


def require_role(identity: Identity, role: Role) -> Identity:
    """Pass only if identity.role is exactly role."""
    if identity.role is not role:
        raise Forbidden(_ROLE_DENIED_MESSAGES[role])
    return identity


def can_view_project(identity: Identity, accessible_by: Collection[int]) -> bool:
    """Admins see every project; Clients only those they were granted."""
    if identity.role is Role.admin:
        return True
    if identity.role is Role.client:
        return identity.id in accessible_by
    return False
