"""
auth/dependencies.py -- FastAPI Depends() helpers for session authentication.

The session handle is read from two places, in priority order:
  1. Session cookie (Settings.session_cookie_name) -- set by the login route.
  2. Authorization: Bearer <handle> header -- API clients that keep the
     handle themselves.

Both carry the same opaque server-side handle; neither is a self-contained
token. Whatever the source, the SessionAuthority decides.

try_get_current_identity() is the soft variant (returns None on failure).
get_current_identity() raises Unauthenticated (401).
require_admin() / require_client() add a strict role check (403).

Layer rule: no imports from api/ or projects/.
  auth/dependencies.py may import from fastapi (for Request/Response)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request, Response

from auth.gate import require_authenticated, require_role
from auth.models import Identity, Role
from auth.sessions import SessionAuthority
from core.config import get_settings

_settings = get_settings()


def read_session_handle(request: Request) -> str | None:
    """Return the raw session handle carried by the request, if any."""
    handle = request.cookies.get(_settings.session_cookie_name)
    if handle:
        return handle
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


def try_get_current_identity(request: Request) -> Identity | None:
    """Resolve the request's session to an Identity. Never raises."""
    sessions: SessionAuthority = request.app.state.sessions
    handle = read_session_handle(request)
    if not handle:
        return None
    identity = sessions.resolve(handle)
    if identity is not None and _settings.session_rolling:
        sessions.refresh(handle)
    return identity


def get_current_identity(request: Request) -> Identity:
    """Require a live session. Raises Unauthenticated (401) otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(identity: Identity = Depends(get_current_identity)): ...
    """
    return require_authenticated(try_get_current_identity(request))


def require_admin(request: Request) -> Identity:
    """401 if unauthenticated, 403 if the session's role is not Admin."""
    return require_role(get_current_identity(request), Role.admin)


def require_client(request: Request) -> Identity:
    """401 if unauthenticated, 403 if the session's role is not Client."""
    return require_role(get_current_identity(request), Role.client)


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def set_session_cookie(response: Response, handle: str) -> None:
    """Write the session handle as an httpOnly cookie on the response.

    httponly=True: JS cannot read the cookie (XSS mitigation).
    samesite="lax": not sent on cross-site POST -- CSRF mitigation for most cases.
    secure: only sent over HTTPS when SECURE_COOKIES=true (set in production).
    max_age: matches the server-side session TTL so both expire together.
    """
    response.set_cookie(
        _settings.session_cookie_name,
        value=handle,
        httponly=True,
        samesite="lax",
        secure=_settings.secure_cookies,
        max_age=_settings.session_expire_seconds,
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(_settings.session_cookie_name, path="/")
