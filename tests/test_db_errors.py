"""
Tests for IntegrityError classification.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from intel_lookup.db.errors import integrity_error_for, is_unique_violation
from intel_lookup.exceptions import DataIntegrityError, DuplicateResourceError


class DriverError(Exception):
    """Stand-in for a DBAPI error carrying a SQLSTATE."""

    def __init__(self, message: str, sqlstate: str | None = None, pgcode: str | None = None):
        super().__init__(message)
        self.sqlstate = sqlstate
        self.pgcode = pgcode


def integrity_error(orig: Exception) -> IntegrityError:
    return IntegrityError("INSERT INTO officers ...", {}, orig)


class TestIsUniqueViolation:
    @pytest.mark.parametrize(
        "orig",
        [
            DriverError("duplicate key", sqlstate="23505"),
            DriverError("duplicate key", pgcode="23505"),
            Exception('duplicate key value violates unique constraint "officers_email_key"'),
            Exception("UNIQUE constraint failed: officers.email"),
        ],
    )
    def test_unique(self, orig):
        assert is_unique_violation(integrity_error(orig)) is True

    @pytest.mark.parametrize(
        "orig",
        [
            DriverError("null value in column", sqlstate="23502"),
            DriverError("violates foreign key constraint", sqlstate="23503"),
            DriverError("violates check constraint", pgcode="23514"),
            Exception("NOT NULL constraint failed: officers.name"),
            Exception("FOREIGN KEY constraint failed"),
        ],
    )
    def test_not_unique(self, orig):
        assert is_unique_violation(integrity_error(orig)) is False

    def test_sqlstate_on_wrapped_cause(self):
        cause = DriverError("raw", sqlstate="23505")
        wrapper = Exception("adapted")
        wrapper.__cause__ = cause

        assert is_unique_violation(integrity_error(wrapper)) is True

    def test_sqlstate_wins_over_message(self):
        orig = DriverError("unique constraint mentioned in a NOT NULL error", sqlstate="23502")

        assert is_unique_violation(integrity_error(orig)) is False


class TestIntegrityErrorFor:
    def test_duplicate(self):
        error = integrity_error_for(
            integrity_error(DriverError("dup", sqlstate="23505")), "officer", "email already in use"
        )

        assert isinstance(error, DuplicateResourceError)
        assert str(error) == "Duplicate officer: email already in use"

    def test_other_constraint(self):
        error = integrity_error_for(
            integrity_error(DriverError('null value in column "name"', sqlstate="23502")),
            "officer",
            "email already in use",
        )

        assert isinstance(error, DataIntegrityError)
        assert error.resource == "officer"
        assert "name" not in str(error)
