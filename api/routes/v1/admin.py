"""
api/routes/v1/admin.py -- Administrator endpoints.

Routes:
  GET   /admin/projects                        -- every project
  POST  /admin/projects                        -- create a project (empty access list)
  GET   /admin/users                           -- every user, no password material
  POST  /admin/users                           -- create a user (works with self-registration off)
  PATCH /admin/users/{user_id}                 -- activate / deactivate
  GET   /admin/requests                        -- every access request, newest first
  POST  /admin/requests/{request_id}/approve   -- approve and grant access
  POST  /admin/requests/{request_id}/deny      -- deny

Every route requires an Admin session (router-level require_admin). The
engine repeats the role check on its own operations.

Deactivation revokes the user's live sessions. Sessions hold a snapshot of
the identity taken at login and would otherwise keep working until expiry.
An admin cannot deactivate their own account.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from api.models import (
    AccessRequestListResponse,
    AccessRequestOut,
    AccessRequestResponse,
    IdentityOut,
    ProjectCreate,
    ProjectListResponse,
    ProjectOut,
    ProjectResponse,
    RecordId,
    SignupRequest,
    UserListResponse,
    UserPatch,
    UserResponse,
)
from auth.authenticator import Authenticator
from auth.dependencies import require_admin
from auth.models import Identity
from auth.sessions import SessionAuthority
from auth.store import UserStore
from core.errors import NotFound, ValidationError
from projects.access import AccessRequestEngine

router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------


@router.get("/projects", response_model=ProjectListResponse)
def list_all_projects(request: Request, admin: Identity = Depends(require_admin)) -> ProjectListResponse:
    engine: AccessRequestEngine = request.app.state.access_engine
    return ProjectListResponse(projects=[ProjectOut.from_project(p) for p in engine.list_projects(admin)])


@router.post("/projects", response_model=ProjectResponse, status_code=201)
def create_project(
    request: Request,
    body: ProjectCreate,
    admin: Identity = Depends(require_admin),
) -> ProjectResponse:
    engine: AccessRequestEngine = request.app.state.access_engine
    project = engine.create_project(admin, body.name, body.description)
    return ProjectResponse(message="Project created successfully.", project=ProjectOut.from_project(project))


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@router.get("/users", response_model=UserListResponse)
def list_users(request: Request) -> UserListResponse:
    user_store: UserStore = request.app.state.user_store
    return UserListResponse(users=[IdentityOut.from_identity(u.to_identity()) for u in user_store.list_users()])


@router.post("/users", response_model=UserResponse, status_code=201)
def create_user(request: Request, body: SignupRequest) -> UserResponse:
    authenticator: Authenticator = request.app.state.authenticator
    identity = authenticator.signup(body.username, body.password, body.email, body.role)
    return UserResponse(message="User created successfully.", user=IdentityOut.from_identity(identity))


@router.patch("/users/{user_id}", response_model=UserResponse)
def update_user(
    request: Request,
    user_id: RecordId,
    body: UserPatch,
    admin: Identity = Depends(require_admin),
) -> UserResponse:
    user_store: UserStore = request.app.state.user_store
    sessions: SessionAuthority = request.app.state.sessions

    if user_store.get_by_id(user_id) is None:
        raise NotFound("User not found.")
    if not body.is_active and user_id == admin.id:
        raise ValidationError("You cannot deactivate your own account.")

    user_store.set_active(user_id, body.is_active)
    if not body.is_active:
        sessions.destroy_for_user(user_id)

    updated = user_store.get_by_id(user_id)
    if updated is None:
        raise NotFound("User not found.")
    message = "User activated." if body.is_active else "User deactivated."
    return UserResponse(message=message, user=IdentityOut.from_identity(updated.to_identity()))


# ---------------------------------------------------------------------------
# Access requests
# ---------------------------------------------------------------------------


@router.get("/requests", response_model=AccessRequestListResponse)
def list_requests(request: Request, admin: Identity = Depends(require_admin)) -> AccessRequestListResponse:
    engine: AccessRequestEngine = request.app.state.access_engine
    return AccessRequestListResponse(requests=[AccessRequestOut.from_request(r) for r in engine.list_all(admin)])


@router.post("/requests/{request_id}/approve", response_model=AccessRequestResponse)
def approve_request(
    request: Request,
    request_id: RecordId,
    admin: Identity = Depends(require_admin),
) -> AccessRequestResponse:
    engine: AccessRequestEngine = request.app.state.access_engine
    resolved = engine.approve(admin, request_id)
    return AccessRequestResponse(
        message="Access request approved successfully.",
        request=AccessRequestOut.from_request(resolved),
    )


@router.post("/requests/{request_id}/deny", response_model=AccessRequestResponse)
def deny_request(
    request: Request,
    request_id: RecordId,
    admin: Identity = Depends(require_admin),
) -> AccessRequestResponse:
    engine: AccessRequestEngine = request.app.state.access_engine
    resolved = engine.deny(admin, request_id)
    return AccessRequestResponse(
        message="Access request denied successfully.",
        request=AccessRequestOut.from_request(resolved),
    )
