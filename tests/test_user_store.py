"""
tests/test_user_store.py -- Unit tests for auth/store.py (UserStore).

Each test gets a fresh SQLite file via the user_store fixture in conftest.
"""

from __future__ import annotations

import pytest

from auth.models import Role, User
from auth.store import UserStore
from core.errors import DuplicateKey


def _user(username: str = "alice", email: str = "alice@example.com", role: Role = Role.client) -> User:
    return User(username=username, email=email, password_hash="$2b$04$fake", role=role)


def test_insert_returns_id_and_normalizes(user_store: UserStore) -> None:
    uid = user_store.insert(_user(username="  Alice ", email="Alice@Example.COM"))
    stored = user_store.get_by_id(uid)
    assert stored is not None
    assert stored.username == "alice"
    assert stored.email == "alice@example.com"
    assert stored.role is Role.client
    assert stored.is_active is True
    assert stored.created_at and stored.updated_at


def test_find_is_case_insensitive(user_store: UserStore) -> None:
    uid = user_store.insert(_user())
    assert user_store.find_by_username("ALICE").id == uid
    assert user_store.find_by_email("Alice@Example.com").id == uid


def test_find_missing_returns_none(user_store: UserStore) -> None:
    assert user_store.find_by_username("nobody") is None
    assert user_store.find_by_email("nobody@example.com") is None
    assert user_store.get_by_id(999) is None


@pytest.mark.parametrize(
    "second",
    [
        {"username": "ALICE", "email": "other@example.com"},
        {"username": "someone", "email": "ALICE@example.com"},
    ],
)
def test_unique_constraint_is_the_backstop(user_store: UserStore, second: dict) -> None:
    user_store.insert(_user())
    with pytest.raises(DuplicateKey):
        user_store.insert(_user(**second))


def test_has_users(user_store: UserStore) -> None:
    assert user_store.has_users() is False
    user_store.insert(_user())
    assert user_store.has_users() is True


def test_list_users_ordered_by_username(user_store: UserStore) -> None:
    user_store.insert(_user("carol", "carol@example.com"))
    user_store.insert(_user("alice", "alice@example.com"))
    user_store.insert(_user("bob", "bob@example.com", Role.admin))
    assert [u.username for u in user_store.list_users()] == ["alice", "bob", "carol"]


def test_set_active(user_store: UserStore) -> None:
    uid = user_store.insert(_user())
    assert user_store.set_active(uid, False) is True
    assert user_store.get_by_id(uid).is_active is False
    assert user_store.set_active(uid, True) is True
    assert user_store.get_by_id(uid).is_active is True


def test_set_active_unknown_user(user_store: UserStore) -> None:
    assert user_store.set_active(42, False) is False


def test_to_identity_drops_password_hash(user_store: UserStore) -> None:
    uid = user_store.insert(_user())
    identity = user_store.get_by_id(uid).to_identity()
    assert not hasattr(identity, "password_hash")
    assert identity.id == uid
