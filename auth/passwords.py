"""
auth/passwords.py -- Password vault: one-way bcrypt hashing and verification.

Security design decisions:
  bcrypt is used directly rather than through passlib. passlib's internal
  wrap-bug detection feeds bcrypt a password longer than 72 bytes, which
  bcrypt 4.x rejects with an explicit error. Direct usage has no shim.

  The cost factor comes from Settings.bcrypt_rounds (default 10). Each hash
  gets a fresh random salt from bcrypt.gensalt().

  verify_password() never raises for a malformed hash or odd input -- it
  returns False, so callers cannot tell a corrupt record from a wrong
  password. bcrypt.checkpw compares in constant time.

  The plaintext is never logged or returned.

Layer rule: no imports from api/ or projects/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging

import bcrypt

from core.config import get_settings
from core.errors import HashingFailure

logger = logging.getLogger("ubiquitous.auth")

_settings = get_settings()


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the plaintext password.

    Raises HashingFailure only if bcrypt itself fails (entropy or memory
    exhaustion). Length limits are the credential policy's job.
    """
    try:
        salt = bcrypt.gensalt(rounds=_settings.bcrypt_rounds)
        return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")
    except (ValueError, MemoryError, OSError) as exc:
        logger.error("Password hashing failed: %s", exc.__class__.__name__)
        raise HashingFailure() from exc


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    if not plain or not hashed:
        return False
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


# Timing equalization dummy hash. Computed once at module load so the first
# login attempt is not measurably slower than later ones. The Authenticator
# verifies against it when no user matched, so "no such user" costs the same
# bcrypt work as "wrong password".
DUMMY_HASH: str = hash_password("ubiquitous_timing_dummy")
