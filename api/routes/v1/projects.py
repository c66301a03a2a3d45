"""
api/routes/v1/projects.py -- Project listing and client access requests.

Routes (in registration order to avoid FastAPI path capture conflicts):
  GET  /projects                  -- projects visible to the caller
  GET  /projects/available        -- Client only: projects not yet granted, with request_pending
  POST /projects/request-access   -- Client only: ask an admin for access
  GET  /projects/{project_id}     -- project detail, if the caller may see it

Visibility: Admins see every project. Clients see only projects whose
access list contains their id. The rule lives in auth.gate.can_view_project;
this module only dispatches.
"""

from fastapi import APIRouter, Depends, Request

from api.models import (
    AccessRequestCreate,
    AccessRequestOut,
    AccessRequestResponse,
    AvailableProjectListResponse,
    AvailableProjectOut,
    ProjectListResponse,
    ProjectOut,
    ProjectResponse,
    RecordId,
)
from auth.dependencies import get_current_identity, require_client
from auth.models import Identity
from core.errors import ValidationError
from projects.access import AccessRequestEngine

# All project routes require a session. Role checks beyond that are per-route.
router = APIRouter(dependencies=[Depends(get_current_identity)])


@router.get("/projects", response_model=ProjectListResponse)
def list_projects(request: Request, identity: Identity = Depends(get_current_identity)) -> ProjectListResponse:
    engine: AccessRequestEngine = request.app.state.access_engine
    projects = engine.list_projects(identity)
    return ProjectListResponse(projects=[ProjectOut.from_project(p) for p in projects])


@router.get("/projects/available", response_model=AvailableProjectListResponse)
def available_projects(
    request: Request,
    identity: Identity = Depends(require_client),
) -> AvailableProjectListResponse:
    """Projects the client can still request, flagged when a request is already pending."""
    engine: AccessRequestEngine = request.app.state.access_engine
    items = engine.available_projects(identity)
    return AvailableProjectListResponse(projects=[AvailableProjectOut.from_available(i) for i in items])


@router.post("/projects/request-access", response_model=AccessRequestResponse, status_code=201)
def request_access(
    request: Request,
    body: AccessRequestCreate,
    identity: Identity = Depends(require_client),
) -> AccessRequestResponse:
    if body.project_id is None:
        raise ValidationError("Project ID is required.")
    engine: AccessRequestEngine = request.app.state.access_engine
    access_request = engine.request(identity, body.project_id)
    return AccessRequestResponse(
        message="Access request submitted successfully.",
        request=AccessRequestOut.from_request(access_request),
    )


@router.get("/projects/{project_id}", response_model=ProjectResponse)
def get_project(
    request: Request,
    project_id: RecordId,
    identity: Identity = Depends(get_current_identity),
) -> ProjectResponse:
    engine: AccessRequestEngine = request.app.state.access_engine
    project = engine.get_project(identity, project_id)
    return ProjectResponse(project=ProjectOut.from_project(project))
