"""
projects/access.py -- Project visibility and the access-request lifecycle.

States: pending -> approved | denied. Both outcomes are terminal.

    request   Client only. Project must exist, the client must not already
              be on its access list, and must not have a pending request
              for it.
    approve   Admin only. Sets status/resolved_at/resolved_by and adds the
              client to the access list. Approving an approved request again
              rewrites the resolution fields; the access list is a set, so
              it still holds the client once.
    deny      Admin only. Same resolution fields, no access-list change.

Every operation takes the caller's Identity and runs the role check itself,
so the engine is safe to drive from anything, not only the HTTP layer.

The duplicate-pending check is check-then-act. The store's partial unique
index is the final word: a racing duplicate surfaces as DuplicateKey and is
reported as DuplicatePending.
"""

from __future__ import annotations

import logging

from auth.gate import can_view_project, require_role
from auth.models import Identity, Role
from core.errors import AlreadyGranted, DuplicateKey, DuplicatePending, Forbidden, NotFound, ValidationError
from projects.models import AccessRequest, AvailableProject, Project, RequestStatus
from projects.store import ProjectStore

logger = logging.getLogger("ubiquitous.projects")


class AccessRequestEngine:
    def __init__(self, store: ProjectStore) -> None:
        self.store = store

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def create_project(self, admin: Identity, name: str, description: str) -> Project:
        require_role(admin, Role.admin)
        name = (name or "").strip()
        description = (description or "").strip()
        if not name or not description:
            raise ValidationError("Project name and description are required.")
        project_id = self.store.create_project(Project(name=name, description=description, created_by=admin.id))
        logger.info("Project created: id=%s by admin id=%s", project_id, admin.id)
        return self._require_project(project_id)

    def list_projects(self, identity: Identity) -> list[Project]:
        """Admins get every project; Clients only those granted to them."""
        if identity.role is Role.admin:
            return self.store.list_projects()
        return self.store.list_projects_for_user(identity.id)

    def get_project(self, identity: Identity, project_id: int) -> Project:
        project = self._require_project(project_id)
        if not can_view_project(identity, project.accessible_by):
            raise Forbidden("You do not have access to this project. Request access first.")
        return project

    def available_projects(self, client: Identity) -> list[AvailableProject]:
        """Projects the client cannot see yet, each flagged if a request is pending."""
        require_role(client, Role.client)
        pending = self.store.pending_project_ids(client.id)
        return [
            AvailableProject(project=p, request_pending=p.id in pending)
            for p in self.store.list_projects()
            if client.id not in p.accessible_by
        ]

    # ------------------------------------------------------------------
    # Access requests
    # ------------------------------------------------------------------

    def request(self, client: Identity, project_id: int) -> AccessRequest:
        require_role(client, Role.client)
        project = self._require_project(project_id)
        if client.id in project.accessible_by:
            raise AlreadyGranted()
        if self.store.has_pending_request(client.id, project_id):
            raise DuplicatePending()

        access_request = AccessRequest(
            user_id=client.id,
            user_name=client.username,
            user_email=client.email,
            project_id=project.id,
            project_name=project.name,
        )
        try:
            request_id = self.store.create_request(access_request)
        except DuplicateKey as exc:
            raise DuplicatePending() from exc

        logger.info("Access requested: request=%s user=%s project=%s", request_id, client.id, project_id)
        return self.store.get_request(request_id)

    def approve(self, admin: Identity, request_id: int) -> AccessRequest:
        return self._resolve(admin, request_id, RequestStatus.approved)

    def deny(self, admin: Identity, request_id: int) -> AccessRequest:
        return self._resolve(admin, request_id, RequestStatus.denied)

    def list_all(self, admin: Identity) -> list[AccessRequest]:
        """Every request, newest first. Admin only."""
        require_role(admin, Role.admin)
        return self.store.list_requests()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _resolve(self, admin: Identity, request_id: int, status: RequestStatus) -> AccessRequest:
        require_role(admin, Role.admin)
        try:
            resolved = self.store.resolve_request(request_id, status, resolved_by=admin.id)
        except DuplicateKey:
            # A concurrent approval inserted the same grant first. The grant
            # now exists, so the retry's set-add is a no-op.
            resolved = self.store.resolve_request(request_id, status, resolved_by=admin.id)
        if resolved is None:
            raise NotFound("Request not found.")
        logger.info("Access request %s %s by admin id=%s", request_id, status.value, admin.id)
        return resolved

    def _require_project(self, project_id: int) -> Project:
        project = self.store.get_project(project_id)
        if project is None:
            raise NotFound("Project not found.")
        return project
