"""
tests/test_gate.py -- Authorization rules in auth/gate.py.
"""

from __future__ import annotations

import pytest

from auth.gate import can_view_project, require_authenticated, require_role
from auth.models import Identity, Role
from core.errors import Forbidden, Unauthenticated

ADMIN = Identity(id=1, username="root", email="root@ex.com", role=Role.admin)
CLIENT = Identity(id=2, username="alice", email="alice@ex.com", role=Role.client)


def test_require_authenticated() -> None:
    assert require_authenticated(CLIENT) is CLIENT
    with pytest.raises(Unauthenticated):
        require_authenticated(None)


@pytest.mark.parametrize("identity,role", [(ADMIN, Role.admin), (CLIENT, Role.client)])
def test_require_role_passes_on_exact_match(identity: Identity, role: Role) -> None:
    assert require_role(identity, role) is identity


def test_admin_is_not_a_client() -> None:
    with pytest.raises(Forbidden, match="Only clients"):
        require_role(ADMIN, Role.client)


def test_client_is_not_an_admin() -> None:
    with pytest.raises(Forbidden, match="Admin access required"):
        require_role(CLIENT, Role.admin)


def test_admin_sees_every_project_without_acl_entry() -> None:
    assert can_view_project(ADMIN, set()) is True


def test_client_needs_acl_entry() -> None:
    assert can_view_project(CLIENT, set()) is False
    assert can_view_project(CLIENT, {3, 4}) is False
    assert can_view_project(CLIENT, {2}) is True


def test_role_parse_is_exact() -> None:
    assert Role.parse("Admin") is Role.admin
    assert Role.parse("Client") is Role.client
    assert Role.parse(Role.client) is Role.client
    assert Role.parse("admin") is None
    assert Role.parse("") is None
    assert Role.parse(None) is None
