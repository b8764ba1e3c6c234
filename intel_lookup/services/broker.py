"""
Query Broker - orchestrates a single officer lookup.

Flow:
1. Load the Active officer
2. Resolve the plan entitlement and its credit cost
3. Pre-check the balance
4. Resolve the service's active credential
5. Dispatch to the adapter registered for the service name
6. Write one query log entry with the final status
7. On success, debit the cost under a row lock
8. Bump credential usage (best-effort)

Steps 1-5 are gates: a failure raises before any side effect. Steps 6-8 never
raise; their failures are logged and counted.
"""

import time
from typing import Protocol
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from intel_lookup.exceptions import (
    EntitlementDeniedError,
    InsufficientCreditsError,
    LookupBrokerError,
    OfficerUnauthorizedError,
    PersistenceWarning,
    ProviderCallError,
    ProviderUnavailableError,
    UnsupportedProviderError,
)
from intel_lookup.models.api import QueryStatus
from intel_lookup.models.domain import (
    AdapterResult,
    Entitlement,
    LookupIntent,
    LookupOutcome,
    OfficerSnapshot,
    ResolvedProvider,
    TransactionData,
)
from intel_lookup.observability.logging import get_logger, log_context
from intel_lookup.observability.metrics import metrics
from intel_lookup.observability.tracing import trace_operation
from intel_lookup.services.credentials import ProviderCredentialService
from intel_lookup.services.entitlement import EntitlementResolver
from intel_lookup.services.ledger import QUERY_USAGE_PAYMENT_MODE, CreditLedger
from intel_lookup.services.officers import OfficerService, parse_uuid
from intel_lookup.services.providers.base import ProviderAdapter, ServiceName
from intel_lookup.services.providers.registry import AdapterRegistry
from intel_lookup.services.query_log import QueryLogger, QueryRecord

logger = get_logger(__name__)

GATE_ERRORS = (
    OfficerUnauthorizedError,
    EntitlementDeniedError,
    InsufficientCreditsError,
    ProviderUnavailableError,
    UnsupportedProviderError,
)

# Denial reasons used as the metrics label
DENIAL_REASONS: dict[type[LookupBrokerError], str] = {
    OfficerUnauthorizedError: "unauthorized",
    EntitlementDeniedError: "not_entitled",
    InsufficientCreditsError: "insufficient_credits",
    ProviderUnavailableError: "provider_unavailable",
    UnsupportedProviderError: "unsupported_provider",
}


# ============================================================================
# Collaborator interfaces
# ============================================================================


class OfficerSource(Protocol):
    async def get_active_officer(self, officer_id: str) -> OfficerSnapshot: ...


class EntitlementSource(Protocol):
    async def resolve(self, plan_id: UUID | None, service_id: UUID) -> Entitlement | None: ...


class CredentialSource(Protocol):
    async def resolve(self, service_id: UUID) -> ResolvedProvider: ...

    async def record_usage(self, service_id: UUID) -> None: ...


class Ledger(Protocol):
    session: AsyncSession

    async def debit(
        self,
        officer_id: UUID,
        amount: int,
        remarks: str | None = None,
        payment_mode: str = QUERY_USAGE_PAYMENT_MODE,
        count_query: bool = False,
        processed_by: UUID | None = None,
    ) -> TransactionData: ...


class QueryRecorder(Protocol):
    async def record(self, record: QueryRecord) -> UUID | None: ...


# ============================================================================
# Broker
# ============================================================================


class QueryBroker:
    """The only component that sees every other one."""

    def __init__(
        self,
        officers: OfficerSource,
        entitlements: EntitlementSource,
        credentials: CredentialSource,
        ledger: Ledger,
        query_logger: QueryRecorder,
        adapters: AdapterRegistry,
    ) -> None:
        self.officers = officers
        self.entitlements = entitlements
        self.credentials = credentials
        self.ledger = ledger
        self.query_logger = query_logger
        self.adapters = adapters

    @classmethod
    def for_session(cls, session: AsyncSession, adapters: AdapterRegistry) -> "QueryBroker":
        """Wire all collaborators onto one database session."""
        return cls(
            officers=OfficerService(session),
            entitlements=EntitlementResolver(session),
            credentials=ProviderCredentialService(session),
            ledger=CreditLedger(session),
            query_logger=QueryLogger(session),
            adapters=adapters,
        )

    async def handle(self, intent: LookupIntent) -> LookupOutcome:
        """
        Run one lookup end to end.

        Raises:
            OfficerUnauthorizedError: Officer unknown or not Active
            EntitlementDeniedError: Service not enabled for the officer's plan
            InsufficientCreditsError: Balance below the entitlement's cost
            ProviderUnavailableError: No active credential for the service
            UnsupportedProviderError: No adapter registered for the service name
        """
        with log_context(officer_id=intent.officer_id, service_id=intent.service_id):
            logger.info("lookup_started", category=intent.category)

            try:
                officer, entitlement, provider, adapter = await self._pass_gates(intent)
            except GATE_ERRORS as exc:
                reason = DENIAL_REASONS[type(exc)]
                logger.warning("lookup_denied", reason=reason, error=str(exc))
                metrics.record_denial(reason)
                raise

            result = await self._dispatch(adapter, provider, intent.input_data)
            credits_used = entitlement.credit_cost if result.success else 0

            query_id = await self.query_logger.record(
                QueryRecord(
                    officer_id=officer.officer_id,
                    officer_name=officer.name,
                    category=intent.category,
                    input_data=intent.input_data,
                    source=provider.source,
                    result_summary=result.result_summary,
                    full_result=result.data,
                    credits_used=credits_used,
                    status=QueryStatus.SUCCESS if result.success else QueryStatus.FAILED,
                    ip_address=intent.ip_address,
                    user_agent=intent.user_agent,
                )
            )

            if result.success:
                await self._debit(officer, provider, entitlement.credit_cost, intent.input_data)

            await self.credentials.record_usage(provider.service_id)

            logger.info(
                "lookup_completed",
                success=result.success,
                credits_used=credits_used,
                query_id=str(query_id) if query_id else None,
            )
            return LookupOutcome(
                success=result.success,
                result_summary=result.result_summary,
                credits_used=credits_used,
                data=result.data,
                error=result.error,
                query_id=query_id,
            )

    # ========================================================================
    # Private Helper Methods
    # ========================================================================

    async def _pass_gates(
        self, intent: LookupIntent
    ) -> tuple[OfficerSnapshot, Entitlement, ResolvedProvider, ProviderAdapter]:
        officer = await self.officers.get_active_officer(intent.officer_id)

        service_id = parse_uuid(intent.service_id)
        entitlement = (
            await self.entitlements.resolve(officer.plan_id, service_id)
            if service_id is not None
            else None
        )
        if entitlement is None:
            raise EntitlementDeniedError(officer.plan_id, intent.service_id)

        if officer.credits_remaining < entitlement.credit_cost:
            raise InsufficientCreditsError(entitlement.credit_cost, officer.credits_remaining)

        provider = await self.credentials.resolve(entitlement.service_id)

        service_name = ServiceName.parse(provider.service_name)
        adapter = self.adapters.get(service_name) if service_name is not None else None
        if adapter is None:
            raise UnsupportedProviderError(provider.service_name)

        return officer, entitlement, provider, adapter

    async def _dispatch(
        self, adapter: ProviderAdapter, provider: ResolvedProvider, input_data: str
    ) -> AdapterResult:
        """Call the adapter. Anything it raises becomes a failed result."""
        start = time.perf_counter()
        with trace_operation(
            "provider_call", service=provider.service_name, provider=provider.service_provider
        ) as span:
            try:
                result = await adapter.lookup(input_data, provider.api_key)
            except ProviderCallError as exc:
                logger.warning(
                    "provider_call_failed",
                    service=provider.service_name,
                    status_code=exc.status_code,
                    error=exc.message,
                )
                result = AdapterResult.failed()
            except Exception:
                logger.error(
                    "provider_call_failed", service=provider.service_name, exc_info=True
                )
                metrics.record_error("unexpected_adapter_error", "provider_call")
                result = AdapterResult.failed()
            span.set_attribute("success", result.success)

        metrics.record_lookup(provider.service_name, result.success, time.perf_counter() - start)
        return result

    async def _debit(
        self, officer: OfficerSnapshot, provider: ResolvedProvider, cost: int, input_data: str
    ) -> None:
        """Debit a successful lookup. Failures become a logged PersistenceWarning."""
        try:
            transaction = await self.ledger.debit(
                officer.officer_id,
                cost,
                remarks=f"{provider.service_name} query: {input_data}",
                payment_mode=QUERY_USAGE_PAYMENT_MODE,
                count_query=True,
            )
        except (SQLAlchemyError, LookupBrokerError) as exc:
            await self.ledger.session.rollback()
            warning = PersistenceWarning("credit_debit", str(exc))
            logger.error(
                "credit_debit_failed",
                operation=warning.operation,
                amount=cost,
                error=warning.message,
            )
            metrics.record_persistence_warning(warning.operation)
            return

        metrics.record_debit(
            provider.service_name, cost, clamped=transaction.balance_before < cost
        )
