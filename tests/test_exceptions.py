"""
Tests for exception classes.

Covers the gate errors, adapter and persistence errors, and their messages.
"""

from uuid import uuid4

import pytest

from intel_lookup.exceptions import (
    DataIntegrityError,
    DuplicateResourceError,
    EntitlementDeniedError,
    InsufficientCreditsError,
    InvalidRequestError,
    LookupBrokerError,
    OfficerNotFoundError,
    OfficerUnauthorizedError,
    PersistenceWarning,
    ProviderCallError,
    ProviderUnavailableError,
    ResourceNotFoundError,
    UnsupportedProviderError,
    WriteVerificationError,
)


class TestLookupBrokerError:
    def test_is_exception(self):
        assert issubclass(LookupBrokerError, Exception)

    @pytest.mark.parametrize(
        "exc",
        [
            InvalidRequestError(["api_id"]),
            OfficerUnauthorizedError("abc"),
            EntitlementDeniedError(None, "svc"),
            InsufficientCreditsError(required=2, available=1),
            ProviderUnavailableError("svc"),
            UnsupportedProviderError("Unknown"),
            ProviderCallError("Signzy", "boom"),
            PersistenceWarning("query_log", "boom"),
            OfficerNotFoundError(uuid4()),
            ResourceNotFoundError("Service", uuid4()),
            DuplicateResourceError("credential", "exists"),
            DataIntegrityError("officer", "bad value"),
            WriteVerificationError("missing"),
        ],
    )
    def test_all_errors_share_base(self, exc):
        """Every domain error can be caught as LookupBrokerError."""
        assert isinstance(exc, LookupBrokerError)


class TestInvalidRequestError:
    def test_lists_missing_fields(self):
        exc = InvalidRequestError(["api_id", "officer_id"])
        assert exc.missing_fields == ["api_id", "officer_id"]
        assert str(exc) == "Missing required fields: api_id, officer_id"


class TestGateMessages:
    """Messages returned to officers."""

    def test_unauthorized_does_not_echo_id(self):
        exc = OfficerUnauthorizedError("secret-officer-id")
        assert str(exc) == "Officer not found or inactive"
        assert exc.officer_id == "secret-officer-id"

    def test_entitlement_denied(self):
        plan_id = uuid4()
        exc = EntitlementDeniedError(plan_id, "svc-1")
        assert str(exc) == "API not enabled for your plan"
        assert exc.plan_id == plan_id
        assert exc.service_id == "svc-1"

    def test_insufficient_credits_message(self):
        exc = InsufficientCreditsError(required=5, available=3)
        assert exc.required == 5
        assert exc.available == 3
        assert str(exc) == "Insufficient credits. Required: 5, Available: 3"

    def test_provider_unavailable(self):
        assert str(ProviderUnavailableError("svc")) == "API key not found or inactive"

    def test_unsupported_provider(self):
        exc = UnsupportedProviderError("Vahan Lookup")
        assert exc.service_name == "Vahan Lookup"
        assert str(exc) == "Unsupported API: Vahan Lookup"


class TestProviderCallError:
    def test_attributes(self):
        exc = ProviderCallError("Signzy", "502 Bad Gateway", status_code=502)
        assert exc.provider == "Signzy"
        assert exc.status_code == 502
        assert exc.message == "502 Bad Gateway"
        assert "Signzy API call failed" in str(exc)

    def test_status_code_optional(self):
        assert ProviderCallError("Signzy", "timeout").status_code is None


class TestPersistenceErrors:
    def test_persistence_warning(self):
        exc = PersistenceWarning("credit_debit", "connection reset")
        assert exc.operation == "credit_debit"
        assert "credit_debit" in str(exc)
        assert "connection reset" in str(exc)

    def test_resource_not_found(self):
        resource_id = uuid4()
        exc = ResourceNotFoundError("RatePlan", resource_id)
        assert str(exc) == f"RatePlan not found: {resource_id}"

    def test_duplicate_resource(self):
        exc = DuplicateResourceError("officer", "email already in use")
        assert exc.resource == "officer"
        assert str(exc) == "Duplicate officer: email already in use"

    def test_write_verification(self):
        assert "Write verification failed" in str(WriteVerificationError("row missing"))

    def test_data_integrity(self):
        exc = DataIntegrityError("rate plan", "value violates a database constraint")
        assert exc.resource == "rate plan"
        assert str(exc) == "Invalid rate plan: value violates a database constraint"
