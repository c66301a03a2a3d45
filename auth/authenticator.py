"""
auth/authenticator.py -- Signup and login orchestration.

Signup:  required fields -> email syntax -> role -> uniqueness -> password
         policy -> hash -> insert. Returns the Identity (never the hash).
         Uniqueness is checked before the password policy so a taken
         username is reported as such even when the second attempt also
         carries a weak password.

Login:   lookup by username, then by email if the input looks like one ->
         active check -> bcrypt verify. Every failure returns None.

Anti-enumeration:
  "no such user", "inactive account" and "wrong password" are
  indistinguishable to the caller: same return value, and bcrypt runs in
  every branch (against DUMMY_HASH when no user matched) so timing does not
  separate them either. The reason is logged for operators only.

Race handling:
  The uniqueness check is check-then-act. A concurrent signup that slips
  between the check and the insert is caught by the store's UNIQUE
  constraints (DuplicateKey), which is translated to DuplicateUser here.

Layer rule: no imports from api/ or projects/.
"""

from __future__ import annotations

import logging

from auth.models import Identity, Role, User
from auth.passwords import DUMMY_HASH, hash_password, verify_password
from auth.store import UserStore, normalize
from core.errors import DuplicateKey, DuplicateUser, ValidationError
from core.validators import SPECIAL_CHARACTERS, is_valid_email, is_valid_password

logger = logging.getLogger("ubiquitous.auth")


class Authenticator:
    def __init__(self, store: UserStore) -> None:
        self.store = store

    # ------------------------------------------------------------------
    # Signup
    # ------------------------------------------------------------------

    def signup(self, username: str, password: str, email: str, role: str | Role) -> Identity:
        """Create a user account and return its Identity.

        Raises:
            ValidationError: a field is empty, malformed, or role is unknown.
            DuplicateUser:   username or email is already registered.
            HashingFailure:  bcrypt failed (propagated from the vault).
        """
        if not username or not password or not email or not role:
            raise ValidationError("All fields are required: username, password, email, and role.")
        if not username.strip():
            raise ValidationError("Username cannot be blank.")
        if not is_valid_email(email):
            raise ValidationError("Invalid email format. Please provide a valid email address.")
        parsed_role = Role.parse(role)
        if parsed_role is None:
            raise ValidationError('Invalid role. Must be either "Admin" or "Client".')

        if self.store.find_by_username(username) is not None:
            raise DuplicateUser("Username already exists. Please choose a different username.")
        if self.store.find_by_email(email) is not None:
            raise DuplicateUser("Email address is already registered. Please use a different email.")

        if not is_valid_password(password):
            raise ValidationError(
                "Password must be at least 8 characters and include: 1 uppercase, 1 lowercase, "
                f"1 number, and 1 special character ({SPECIAL_CHARACTERS})."
            )

        user = User(
            username=normalize(username),
            email=normalize(email),
            password_hash=hash_password(password),
            role=parsed_role,
            is_active=True,
        )
        try:
            user_id = self.store.insert(user)
        except DuplicateKey as exc:
            logger.info("Signup lost a uniqueness race for username=%s", user.username)
            raise DuplicateUser() from exc

        created = self.store.get_by_id(user_id)
        logger.info("User created: id=%s username=%s role=%s", user_id, user.username, parsed_role.value)
        return created.to_identity() if created is not None else user.to_identity()

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    def login(self, username_or_email: str, password: str) -> Identity | None:
        """Verify credentials. Returns the Identity on success, None otherwise."""
        if not username_or_email or not password:
            return None

        user = self.store.find_by_username(username_or_email)
        if user is None and is_valid_email(username_or_email.strip()):
            user = self.store.find_by_email(username_or_email)

        if user is None:
            verify_password(password, DUMMY_HASH)
            logger.info("Login failed: unknown account %r", normalize(username_or_email))
            return None

        password_ok = verify_password(password, user.password_hash)
        if not user.is_active:
            logger.info("Login failed: inactive account id=%s", user.id)
            return None
        if not password_ok:
            logger.info("Login failed: bad password for id=%s", user.id)
            return None

        return user.to_identity()
