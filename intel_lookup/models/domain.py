"""
Domain Models - Internal business logic models using dataclasses.

All data structures passed between services are immutable dataclasses.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from intel_lookup.exceptions import InvalidRequestError
from intel_lookup.models.api import OfficerStatus, TransactionAction


@dataclass(frozen=True)
class LookupIntent:
    """Validated lookup request - all four fields are required."""

    service_id: str
    input_data: str
    category: str
    officer_id: str
    ip_address: str | None = None
    user_agent: str | None = None

    def __post_init__(self) -> None:
        """Reject blank or missing required fields."""
        missing = [
            name
            for name, value in (
                ("api_id", self.service_id),
                ("input_data", self.input_data),
                ("category", self.category),
                ("officer_id", self.officer_id),
            )
            if value is None or not str(value).strip()
        ]
        if missing:
            raise InvalidRequestError(missing)


@dataclass(frozen=True)
class OfficerSnapshot:
    """Officer state at the time it was loaded."""

    officer_id: UUID
    name: str
    status: OfficerStatus
    plan_id: UUID | None
    credits_remaining: int
    total_credits: int
    total_queries: int


@dataclass(frozen=True)
class Entitlement:
    """Enabled plan-service binding and its per-lookup credit cost."""

    plan_id: UUID
    service_id: UUID
    enabled: bool
    credit_cost: int

    def __post_init__(self) -> None:
        """Validate entitlement constraints."""
        if self.credit_cost < 0:
            raise ValueError(f"Credit cost cannot be negative: {self.credit_cost}")


@dataclass(frozen=True)
class ResolvedProvider:
    """Service definition joined with its active credential."""

    service_id: UUID
    service_name: str
    service_provider: str
    credential_id: UUID
    api_key: str = field(repr=False)

    @property
    def source(self) -> str:
        """Human-readable source label stored on query log entries."""
        return f"{self.service_name} ({self.service_provider})"


@dataclass(frozen=True)
class AdapterResult:
    """Normalized result of a provider adapter call."""

    success: bool
    result_summary: str
    credits_used: int
    data: Any | None = None
    error: str | None = None

    @classmethod
    def failed(cls) -> "AdapterResult":
        """Result used when the provider call raised."""
        return cls(
            success=False,
            result_summary="API call failed. Please try again.",
            credits_used=0,
            data=None,
            error="External API call failed",
        )


@dataclass(frozen=True)
class TransactionData:
    """Immutable credit transaction data after persistence."""

    transaction_id: UUID
    officer_id: UUID
    action: TransactionAction
    credits: int
    balance_before: int
    balance_after: int
    payment_mode: str
    remarks: str | None
    created_at: datetime


@dataclass(frozen=True)
class LookupOutcome:
    """What the broker returns to the route. Never carries the credential."""

    success: bool
    result_summary: str
    credits_used: int
    data: Any | None = None
    error: str | None = None
    query_id: UUID | None = None
