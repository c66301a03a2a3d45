"""
core/validators.py -- Credential policy: email syntax and password strength.

Pure functions, no I/O. They return booleans (or a strength label) rather than
raising, so callers decide how a bad value is reported. The Authenticator
turns a False into a ValidationError; the signup UI may call
password_strength() purely for advice.

Special characters accepted by the password policy are the fixed set
SPECIAL_CHARACTERS. Anything else (spaces, unicode symbols) is allowed in a
password but does not count towards the special-character requirement.
"""

from __future__ import annotations

import re
from enum import Enum

SPECIAL_CHARACTERS = "@$!%*?&#"

PASSWORD_MIN_LENGTH = 8
# bcrypt only looks at the first 72 bytes; longer inputs would be truncated
# silently, so they are rejected here instead.
PASSWORD_MAX_BYTES = 72

_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9-]+(?:\.[a-zA-Z0-9-]+)*\.[a-zA-Z]{2,}$")
_SPECIAL_RE = re.compile(f"[{re.escape(SPECIAL_CHARACTERS)}]")


class PasswordStrength(str, Enum):
    weak = "weak"
    fair = "fair"
    good = "good"
    very_good = "very-good"
    strong = "strong"


def is_valid_email(value: str) -> bool:
    """Return True for local@domain.tld with an ASCII local part and a 2+ letter TLD."""
    if not value or not isinstance(value, str):
        return False
    return _EMAIL_RE.fullmatch(value) is not None


def is_valid_password(value: str) -> bool:
    """Return True if the password satisfies the signup policy.

    Minimum 8 characters with at least one uppercase letter, one lowercase
    letter, one digit and one character from SPECIAL_CHARACTERS.
    """
    if not value or not isinstance(value, str):
        return False
    if len(value) < PASSWORD_MIN_LENGTH or len(value.encode("utf-8")) > PASSWORD_MAX_BYTES:
        return False
    return (
        re.search(r"[A-Z]", value) is not None
        and re.search(r"[a-z]", value) is not None
        and re.search(r"[0-9]", value) is not None
        and _SPECIAL_RE.search(value) is not None
    )


def password_strength(value: str) -> PasswordStrength:
    """Score a password for display. Advisory only -- never blocks signup.

    One point per length tier reached (8, 10, 12) and one per character
    class present (lower, upper, digit, special), for a maximum of 7.
    """
    if not value:
        return PasswordStrength.weak

    length = len(value)
    score = sum(1 for tier in (8, 10, 12) if length >= tier)
    score += sum(
        1
        for present in (
            re.search(r"[a-z]", value),
            re.search(r"[A-Z]", value),
            re.search(r"[0-9]", value),
            _SPECIAL_RE.search(value),
        )
        if present
    )

    if score <= 2:
        return PasswordStrength.weak
    if score <= 4:
        return PasswordStrength.fair
    if score == 5:
        return PasswordStrength.good
    if score == 6:
        return PasswordStrength.very_good
    return PasswordStrength.strong
