"""
Tests for domain models.
"""

from dataclasses import FrozenInstanceError
from uuid import uuid4

import pytest

from intel_lookup.exceptions import InvalidRequestError
from intel_lookup.models.api import LookupRequest, LookupResponse
from intel_lookup.models.domain import (
    AdapterResult,
    Entitlement,
    LookupIntent,
    LookupOutcome,
    ResolvedProvider,
)


class TestLookupIntent:
    """Tests for LookupIntent validation."""

    def test_valid_intent(self):
        intent = LookupIntent(
            service_id=str(uuid4()),
            input_data="9876543210",
            category="Phone Lookup",
            officer_id=str(uuid4()),
        )
        assert intent.ip_address is None
        assert intent.user_agent is None

    def test_missing_fields_are_named(self):
        with pytest.raises(InvalidRequestError) as exc_info:
            LookupIntent(service_id="", input_data="x", category="  ", officer_id="")

        assert exc_info.value.missing_fields == ["api_id", "category", "officer_id"]

    def test_intent_is_immutable(self):
        intent = LookupIntent(service_id="a", input_data="b", category="c", officer_id="d")
        with pytest.raises(FrozenInstanceError):
            intent.input_data = "other"  # type: ignore[misc]


class TestEntitlement:
    def test_negative_cost_rejected(self):
        with pytest.raises(ValueError, match="negative"):
            Entitlement(plan_id=uuid4(), service_id=uuid4(), enabled=True, credit_cost=-1)

    def test_zero_cost_allowed(self):
        entitlement = Entitlement(plan_id=uuid4(), service_id=uuid4(), enabled=True, credit_cost=0)
        assert entitlement.credit_cost == 0


class TestResolvedProvider:
    def test_api_key_not_in_repr(self):
        provider = ResolvedProvider(
            service_id=uuid4(),
            service_name="Phone Prefill V2",
            service_provider="Signzy",
            credential_id=uuid4(),
            api_key="sk_live_do_not_print",
        )
        assert "sk_live_do_not_print" not in repr(provider)

    def test_source_label(self):
        provider = ResolvedProvider(
            service_id=uuid4(),
            service_name="Credit History",
            service_provider="CIBIL",
            credential_id=uuid4(),
            api_key="k",
        )
        assert provider.source == "Credit History (CIBIL)"


class TestAdapterResult:
    def test_failed_result(self):
        result = AdapterResult.failed()
        assert result.success is False
        assert result.credits_used == 0
        assert result.data is None
        assert result.error == "External API call failed"
        assert result.result_summary == "API call failed. Please try again."


class TestLookupOutcome:
    def test_has_no_credential_field(self):
        assert "api_key" not in LookupOutcome.__dataclass_fields__


class TestLookupApiModels:
    def test_request_fields_optional(self):
        request = LookupRequest()
        assert request.api_id is None
        assert request.officer_id is None

    def test_response_excludes_none(self):
        body = LookupResponse(success=False, error="API not enabled for your plan")
        assert body.model_dump(exclude_none=True) == {
            "success": False,
            "result_summary": "",
            "credits_used": 0,
            "error": "API not enabled for your plan",
        }
