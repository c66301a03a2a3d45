"""
api/routes/v1/auth.py -- Signup, login, logout and session identity endpoints.

Routes:
  POST /api/v1/auth/signup   -- self-registration (public, rate limited)
  POST /api/v1/auth/login    -- password login; starts a session (public, rate limited)
  POST /api/v1/auth/logout   -- ends the current session; always succeeds
  GET  /api/v1/auth/me       -- identity bound to the current session (requires auth)

Security:
  Login returns one generic bad_credentials error for unknown user, inactive
  account and wrong password alike. The Authenticator already equalizes
  timing across those cases -- never inline store lookups here.
  Login and logout responses carry Cache-Control: no-store.
  A successful login discards any session handle the request already carried,
  so a pre-set handle cannot be carried across authentication.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import (
    ErrorDetail,
    ErrorResponse,
    IdentityOut,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    SignupRequest,
    UserResponse,
)
from auth.authenticator import Authenticator
from auth.dependencies import clear_session_cookie, get_current_identity, read_session_handle, set_session_cookie
from auth.models import Identity
from auth.sessions import SessionAuthority
from core.config import get_settings
from core.errors import Forbidden

# Auth policy:
# - POST /api/v1/auth/signup:  public -- unless SELF_REGISTRATION_ENABLED=false
# - POST /api/v1/auth/login:   public -- login endpoint must be unauthenticated
# - POST /api/v1/auth/logout:  public -- destroying a session needs no prior auth
# - GET  /api/v1/auth/me:      requires auth (get_current_identity)
router = APIRouter()

_settings = get_settings()

# @limiter.limit goes directly above def, under @router.post: the router must
# register the wrapped function or the limit never runs.


@router.post("/auth/signup", response_model=UserResponse, status_code=201)
@limiter.limit(_settings.signup_rate_limit)
def signup(request: Request, body: SignupRequest) -> UserResponse:
    """Create an account. Validation and duplicate errors use the shared error envelope."""
    if not _settings.self_registration_enabled:
        raise Forbidden("Self-registration is disabled. Ask an administrator for an account.")
    authenticator: Authenticator = request.app.state.authenticator
    identity = authenticator.signup(body.username, body.password, body.email, body.role)
    return UserResponse(message="User created successfully.", user=IdentityOut.from_identity(identity))


@router.post("/auth/login", response_model=LoginResponse)
@limiter.limit(_settings.login_rate_limit)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with username-or-email and password; set the session cookie."""
    authenticator: Authenticator = request.app.state.authenticator
    sessions: SessionAuthority = request.app.state.sessions

    identity = authenticator.login(body.username, body.password)
    if identity is None:
        resp = JSONResponse(
            status_code=401,
            content=ErrorResponse(
                message="Invalid username or password.",
                error=ErrorDetail(code="bad_credentials", message="Invalid username or password."),
            ).model_dump(),
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    sessions.destroy(read_session_handle(request))
    session = sessions.create(identity)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            user=IdentityOut.from_identity(identity),
            session_handle=session.handle,
            expires_in=sessions.ttl,
        ).model_dump(),
    )
    set_session_cookie(resp, session.handle)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/logout", response_model=MessageResponse)
def logout(request: Request) -> JSONResponse:
    """Destroy the current session, if any. Reports success either way."""
    sessions: SessionAuthority = request.app.state.sessions
    handle = read_session_handle(request)
    sessions.destroy(handle)
    message = "Logout successful." if handle else "Already logged out."
    resp = JSONResponse(content=MessageResponse(message=message).model_dump())
    clear_session_cookie(resp)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/auth/me", response_model=UserResponse)
def me(identity: Identity = Depends(get_current_identity)) -> UserResponse:
    """Return the identity snapshot bound to the current session."""
    return UserResponse(user=IdentityOut.from_identity(identity))
