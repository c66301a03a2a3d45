"""
API request and response models for Ubiquitous REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
projects/models.py, which own the internal domain representation. Route
handlers map between the two through the from_* factory methods here.

Response envelope: every success body carries success=True and an optional
message, mirroring the error envelope ({success: False, message, error}) so
clients branch on one field.

Request models do only shape checks (types, max lengths). Credential rules
(email syntax, password strength, role) belong to the Authenticator so they
apply equally to the API, the CLI and tests, and so violations come back as
the same validation_error envelope.
"""

from typing import Annotated, Optional

from fastapi import Path
from pydantic import BaseModel, ConfigDict, Field

from auth.models import Identity
from projects.models import AccessRequest, AvailableProject, Project

# SQLite INTEGER is a signed 64-bit value. Larger ids cannot name a row and
# would overflow the driver, so they fail request validation instead.
MAX_RECORD_ID = 2**63 - 1

RecordId = Annotated[int, Path(ge=1, le=MAX_RECORD_ID)]


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class SignupRequest(BaseModel):
    """Request body for POST /auth/signup and POST /admin/users.

    No whitespace stripping here: the password must reach the vault exactly
    as typed. The store normalizes username and email itself.
    """

    username: str = Field(default="", max_length=255)
    password: str = Field(default="", max_length=255)
    email: str = Field(default="", max_length=255)
    role: str = Field(default="", max_length=20)


class LoginRequest(BaseModel):
    """Request body for POST /auth/login. username accepts a username or an email."""

    username: str = Field(default="", max_length=255)
    password: str = Field(default="", max_length=255)


class ProjectCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(default="", max_length=255)
    description: str = Field(default="", max_length=5000)


class AccessRequestCreate(BaseModel):
    project_id: Optional[int] = Field(default=None, ge=1, le=MAX_RECORD_ID)


class UserPatch(BaseModel):
    """Request body for PATCH /admin/users/{id}. Role is immutable."""

    is_active: bool


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class IdentityOut(BaseModel):
    """Public view of a user. Never carries password material."""

    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    email: str
    role: str
    created_at: Optional[str] = None
    is_active: bool = True

    @classmethod
    def from_identity(cls, identity: Identity) -> "IdentityOut":
        return cls(
            id=identity.id,
            username=identity.username,
            email=identity.email,
            role=identity.role.value,
            created_at=identity.created_at,
            is_active=identity.is_active,
        )


class ProjectOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    description: str
    created_at: str
    created_by: int
    accessible_by: list[int]

    @classmethod
    def from_project(cls, project: Project) -> "ProjectOut":
        return cls(
            id=project.id,
            name=project.name,
            description=project.description,
            created_at=project.created_at,
            created_by=project.created_by,
            accessible_by=sorted(project.accessible_by),
        )


class AvailableProjectOut(ProjectOut):
    """A project the client may request, with the pending flag for the UI."""

    request_pending: bool

    @classmethod
    def from_available(cls, item: AvailableProject) -> "AvailableProjectOut":
        base = ProjectOut.from_project(item.project)
        return cls(**base.model_dump(), request_pending=item.request_pending)


class AccessRequestOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    user_id: int
    user_name: str
    user_email: str
    project_id: int
    project_name: str
    status: str
    requested_at: str
    resolved_at: Optional[str] = None
    resolved_by: Optional[int] = None

    @classmethod
    def from_request(cls, request: AccessRequest) -> "AccessRequestOut":
        return cls(
            id=request.id,
            user_id=request.user_id,
            user_name=request.user_name,
            user_email=request.user_email,
            project_id=request.project_id,
            project_name=request.project_name,
            status=request.status.value,
            requested_at=request.requested_at,
            resolved_at=request.resolved_at,
            resolved_by=request.resolved_by,
        )


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    message: str


class UserResponse(BaseModel):
    """Signup, admin user creation and /auth/me."""

    model_config = ConfigDict(frozen=True)

    success: bool = True
    message: Optional[str] = None
    user: IdentityOut


class LoginResponse(BaseModel):
    """Login success. session_handle is the same value set in the session cookie."""

    model_config = ConfigDict(frozen=True)

    success: bool = True
    message: str = "Login successful."
    user: IdentityOut
    session_handle: str
    expires_in: int


class UserListResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    users: list[IdentityOut]


class ProjectResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    message: Optional[str] = None
    project: ProjectOut


class ProjectListResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    projects: list[ProjectOut]


class AvailableProjectListResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    projects: list[AvailableProjectOut]


class AccessRequestResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    message: Optional[str] = None
    request: AccessRequestOut


class AccessRequestListResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    requests: list[AccessRequestOut]


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    success: bool = False
    message: str
    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
