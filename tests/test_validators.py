"""
tests/test_validators.py -- Unit tests for the credential policy in core/validators.py.

Pure functions, no fixtures needed.
"""

from __future__ import annotations

import pytest

from core.validators import (
    SPECIAL_CHARACTERS,
    PasswordStrength,
    is_valid_email,
    is_valid_password,
    password_strength,
)


class TestEmail:
    @pytest.mark.parametrize(
        "value",
        ["alice@ex.com", "first.last+tag@mail.example.org", "a_b-c%d@sub-domain.co.uk", "X@Y.io"],
    )
    def test_accepts_well_formed(self, value: str) -> None:
        assert is_valid_email(value) is True

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "alice",
            "alice@",
            "@ex.com",
            "alice@ex",
            "alice@ex.c",
            "alice@ex.c0m",
            "al ice@ex.com",
            "alice@@ex.com",
            "álice@ex.com",
        ],
    )
    def test_rejects_malformed(self, value: str) -> None:
        assert is_valid_email(value) is False

    def test_non_string_is_rejected(self) -> None:
        assert is_valid_email(None) is False  # type: ignore[arg-type]


class TestPasswordPolicy:
    def test_accepts_password_with_every_class(self) -> None:
        assert is_valid_password("Passw0rd!") is True

    @pytest.mark.parametrize(
        "value,missing",
        [
            ("passw0rd!", "uppercase"),
            ("PASSW0RD!", "lowercase"),
            ("Password!", "digit"),
            ("Passw0rdd", "special"),
            ("Pa0!", "length"),
            ("Other9$", "length"),
        ],
    )
    def test_rejects_when_a_requirement_is_missing(self, value: str, missing: str) -> None:
        assert is_valid_password(value) is False, missing

    def test_every_listed_special_character_counts(self) -> None:
        for ch in SPECIAL_CHARACTERS:
            assert is_valid_password(f"Abcdef1{ch}") is True, ch

    def test_unlisted_symbol_does_not_count_as_special(self) -> None:
        assert is_valid_password("Abcdef1^") is False

    def test_rejects_more_than_72_bytes(self) -> None:
        ok = "Aa1!" + "x" * 68
        assert len(ok.encode("utf-8")) == 72
        assert is_valid_password(ok) is True
        assert is_valid_password(ok + "x") is False

    def test_empty_is_rejected(self) -> None:
        assert is_valid_password("") is False


class TestPasswordStrength:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("", PasswordStrength.weak),
            ("abc", PasswordStrength.weak),
            ("abcdefgh", PasswordStrength.weak),
            ("abcdefgH", PasswordStrength.fair),
            ("Abcdefg1", PasswordStrength.fair),
            ("Abcdefg1!", PasswordStrength.good),
            ("Abcdefgh1!", PasswordStrength.very_good),
            ("Abcdefghij1!", PasswordStrength.strong),
        ],
    )
    def test_levels(self, value: str, expected: PasswordStrength) -> None:
        assert password_strength(value) is expected

    def test_serialized_value_uses_hyphen(self) -> None:
        assert PasswordStrength.very_good.value == "very-good"

    def test_strength_is_advisory_only(self) -> None:
        # A weak-scoring password can still pass the policy and vice versa.
        assert password_strength("Passw0rd!") is PasswordStrength.good
        assert is_valid_password("abcdefghijklmnop") is False
        assert password_strength("abcdefghijklmnop") is PasswordStrength.fair
