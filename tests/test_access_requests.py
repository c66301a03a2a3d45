"""
tests/test_access_requests.py -- The access-request lifecycle in projects/access.py.

Identities come from real signups (admin, alice, bob fixtures in conftest)
so ids line up with rows in the user store, as they do in production.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest

from auth.models import Identity
from core.errors import (
    AlreadyGranted,
    DuplicateKey,
    DuplicatePending,
    Forbidden,
    NotFound,
    RequestAlreadyResolved,
    ValidationError,
)
from projects.access import AccessRequestEngine
from projects.models import RequestStatus


@pytest.fixture
def apollo(engine: AccessRequestEngine, admin: Identity):
    return engine.create_project(admin, "Apollo", "Lunar landing program")


class TestProjects:
    def test_admin_creates_project_with_empty_acl(self, engine, admin, apollo) -> None:
        assert apollo.id is not None
        assert apollo.created_by == admin.id
        assert apollo.accessible_by == set()

    def test_client_cannot_create_project(self, engine, alice) -> None:
        with pytest.raises(Forbidden):
            engine.create_project(alice, "Gemini", "Two-person capsule")

    @pytest.mark.parametrize("name,description", [("", "desc"), ("Gemini", ""), ("  ", "  ")])
    def test_project_fields_required(self, engine, admin, name, description) -> None:
        with pytest.raises(ValidationError):
            engine.create_project(admin, name, description)

    def test_admin_lists_every_project(self, engine, admin, apollo) -> None:
        gemini = engine.create_project(admin, "Gemini", "Two-person capsule")
        assert [p.id for p in engine.list_projects(admin)] == [apollo.id, gemini.id]

    def test_client_lists_only_granted_projects(self, engine, alice, apollo) -> None:
        assert engine.list_projects(alice) == []

    def test_get_project_visibility(self, engine, admin, alice, apollo) -> None:
        assert engine.get_project(admin, apollo.id).id == apollo.id
        with pytest.raises(Forbidden):
            engine.get_project(alice, apollo.id)
        with pytest.raises(NotFound):
            engine.get_project(admin, 999)

    def test_available_projects_flags_pending(self, engine, admin, alice, apollo) -> None:
        gemini = engine.create_project(admin, "Gemini", "Two-person capsule")
        engine.request(alice, apollo.id)

        available = {a.project.id: a.request_pending for a in engine.available_projects(alice)}
        assert available == {apollo.id: True, gemini.id: False}

    def test_available_projects_excludes_granted(self, engine, admin, alice, apollo) -> None:
        engine.approve(admin, engine.request(alice, apollo.id).id)
        assert engine.available_projects(alice) == []

    def test_available_projects_is_client_only(self, engine, admin) -> None:
        with pytest.raises(Forbidden):
            engine.available_projects(admin)


class TestRequest:
    def test_creates_pending_request(self, engine, alice, apollo) -> None:
        req = engine.request(alice, apollo.id)
        assert req.status is RequestStatus.pending
        assert req.user_id == alice.id
        assert req.user_name == "alice"
        assert req.user_email == "alice@example.com"
        assert req.project_name == "Apollo"

    def test_admin_cannot_request(self, engine, admin, apollo) -> None:
        with pytest.raises(Forbidden):
            engine.request(admin, apollo.id)

    def test_unknown_project(self, engine, alice) -> None:
        with pytest.raises(NotFound):
            engine.request(alice, 999)

    def test_duplicate_pending(self, engine, alice, apollo) -> None:
        engine.request(alice, apollo.id)
        with pytest.raises(DuplicatePending):
            engine.request(alice, apollo.id)

    def test_pending_is_per_client(self, engine, alice, bob, apollo) -> None:
        engine.request(alice, apollo.id)
        assert engine.request(bob, apollo.id).user_id == bob.id

    def test_already_granted(self, engine, admin, alice, apollo) -> None:
        engine.approve(admin, engine.request(alice, apollo.id).id)
        with pytest.raises(AlreadyGranted):
            engine.request(alice, apollo.id)

    def test_new_request_allowed_after_denial(self, engine, admin, alice, apollo) -> None:
        first = engine.request(alice, apollo.id)
        engine.deny(admin, first.id)
        second = engine.request(alice, apollo.id)
        assert second.id != first.id
        assert second.status is RequestStatus.pending

    def test_lost_race_reports_duplicate_pending(self, engine, alice, apollo) -> None:
        with patch.object(engine.store, "create_request", side_effect=DuplicateKey()):
            with pytest.raises(DuplicatePending):
                engine.request(alice, apollo.id)


class TestResolve:
    def test_approve_walkthrough(self, engine, admin, alice, apollo) -> None:
        req = engine.request(alice, apollo.id)
        approved = engine.approve(admin, req.id)

        assert approved.status is RequestStatus.approved
        assert approved.resolved_by == admin.id
        assert approved.resolved_at is not None
        assert alice.id in engine.get_project(admin, apollo.id).accessible_by
        assert [p.id for p in engine.list_projects(alice)] == [apollo.id]
        assert engine.get_project(alice, apollo.id).id == apollo.id

    def test_double_approve_keeps_one_acl_entry(self, engine, admin, alice, apollo) -> None:
        req = engine.request(alice, apollo.id)
        engine.approve(admin, req.id)
        again = engine.approve(admin, req.id)
        assert again.status is RequestStatus.approved
        assert engine.get_project(admin, apollo.id).accessible_by == {alice.id}

    def test_admin_never_enters_acl(self, engine, admin, alice, apollo) -> None:
        engine.approve(admin, engine.request(alice, apollo.id).id)
        assert admin.id not in engine.get_project(admin, apollo.id).accessible_by

    def test_deny_leaves_acl_unchanged(self, engine, admin, alice, apollo) -> None:
        denied = engine.deny(admin, engine.request(alice, apollo.id).id)
        assert denied.status is RequestStatus.denied
        assert denied.resolved_by == admin.id
        assert engine.get_project(admin, apollo.id).accessible_by == set()

    def test_approved_cannot_be_denied(self, engine, admin, alice, apollo) -> None:
        req = engine.request(alice, apollo.id)
        engine.approve(admin, req.id)
        with pytest.raises(RequestAlreadyResolved):
            engine.deny(admin, req.id)
        assert alice.id in engine.get_project(admin, apollo.id).accessible_by

    @pytest.mark.parametrize("action", ["approve", "deny"])
    def test_unknown_request(self, engine, admin, action: str) -> None:
        with pytest.raises(NotFound):
            getattr(engine, action)(admin, 999)

    @pytest.mark.parametrize("action", ["approve", "deny"])
    def test_client_cannot_resolve(self, engine, alice, apollo, action: str) -> None:
        req = engine.request(alice, apollo.id)
        with pytest.raises(Forbidden):
            getattr(engine, action)(alice, req.id)

    def test_list_all_newest_first_and_admin_only(self, engine, admin, alice, bob, apollo) -> None:
        first = engine.request(alice, apollo.id)
        second = engine.request(bob, apollo.id)
        assert [r.id for r in engine.list_all(admin)] == [second.id, first.id]
        with pytest.raises(Forbidden):
            engine.list_all(alice)
