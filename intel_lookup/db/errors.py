"""
Database error classification.

Only unique-constraint violations are conflicts; every other IntegrityError
(NOT NULL, foreign key, CHECK) is bad input.
"""

from sqlalchemy.exc import IntegrityError

from intel_lookup.exceptions import DataIntegrityError, DuplicateResourceError

# PostgreSQL SQLSTATE for unique_violation
UNIQUE_VIOLATION = "23505"


def is_unique_violation(exc: IntegrityError) -> bool:
    """True when the driver reports a unique-constraint violation."""
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate is None:
        sqlstate = getattr(getattr(orig, "__cause__", None), "sqlstate", None)
    if sqlstate is not None:
        return str(sqlstate) == UNIQUE_VIOLATION
    # Drivers without SQLSTATE (sqlite) only leave the message
    message = str(orig).lower()
    return "unique constraint" in message or "duplicate key" in message


def integrity_error_for(
    exc: IntegrityError, resource: str, duplicate_message: str
) -> DuplicateResourceError | DataIntegrityError:
    """Translate an IntegrityError into the matching domain error."""
    if is_unique_violation(exc):
        return DuplicateResourceError(resource, duplicate_message)
    return DataIntegrityError(resource, "value violates a database constraint")
