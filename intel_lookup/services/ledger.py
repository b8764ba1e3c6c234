"""
Credit Ledger - Officer balance mutations with write verification.

NO DICTIONARIES - All operations use strongly typed domain models.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from intel_lookup.db.models import CreditTransaction, Officer
from intel_lookup.exceptions import OfficerNotFoundError, WriteVerificationError
from intel_lookup.models.api import TransactionAction
from intel_lookup.models.domain import TransactionData
from intel_lookup.observability.logging import get_logger

logger = get_logger(__name__)

QUERY_USAGE_PAYMENT_MODE = "Query Usage"
DEFAULT_PAYMENT_MODE = "Department Budget"


def compute_debit_balance(current: int, amount: int) -> tuple[int, bool]:
    """
    Balance after a debit, floored at zero.

    Returns (new_balance, clamped).
    """
    if amount < 0:
        raise ValueError(f"Debit amount cannot be negative: {amount}")
    new_balance = current - amount
    if new_balance < 0:
        return 0, True
    return new_balance, False


def compute_credit_balances(
    credits_remaining: int, total_credits: int, amount: int, action: TransactionAction
) -> tuple[int, int]:
    """
    (credits_remaining, total_credits) after a credit.

    Renewal and Top-up grow the allotment. Refund only restores the balance.
    """
    if amount < 0:
        raise ValueError(f"Credit amount cannot be negative: {amount}")
    if action == TransactionAction.REFUND:
        return credits_remaining + amount, total_credits
    if action in (TransactionAction.RENEWAL, TransactionAction.TOP_UP):
        return credits_remaining + amount, total_credits + amount
    raise ValueError(f"Not a credit action: {action}")


class CreditLedger:
    """
    Credit ledger with write verification.

    All write operations follow the pattern:
    1. Lock officer row (SELECT FOR UPDATE)
    2. Insert transaction and update balance
    3. Flush, read back and verify
    4. Commit both in one database transaction
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize ledger with database session."""
        self.session = session

    async def debit(
        self,
        officer_id: UUID,
        amount: int,
        remarks: str | None = None,
        payment_mode: str = QUERY_USAGE_PAYMENT_MODE,
        count_query: bool = False,
        processed_by: UUID | None = None,
    ) -> TransactionData:
        """
        Deduct credits from an officer.

        Never rejects for insufficient balance. The new balance is floored at
        zero and the clamp is logged.

        Raises:
            OfficerNotFoundError: Officer doesn't exist
            WriteVerificationError: Transaction row missing after flush
        """
        if amount < 0:
            raise ValueError(f"Debit amount cannot be negative: {amount}")

        officer = await self._lock_officer_for_update(officer_id)
        if officer is None:
            raise OfficerNotFoundError(officer_id)

        balance_before = officer.credits_remaining
        balance_after, clamped = compute_debit_balance(balance_before, amount)
        if clamped:
            logger.warning(
                "credit_debit_clamped",
                officer_id=str(officer_id),
                balance_before=balance_before,
                amount=amount,
            )

        officer.credits_remaining = balance_after
        if count_query:
            officer.total_queries = officer.total_queries + 1

        transaction = CreditTransaction(
            officer_id=officer.id,
            officer_name=officer.name,
            action=TransactionAction.DEDUCTION.value,
            credits=-amount,
            balance_before=balance_before,
            balance_after=balance_after,
            payment_mode=payment_mode,
            remarks=remarks,
            processed_by=processed_by,
        )
        return await self._persist(transaction)

    async def credit(
        self,
        officer_id: UUID,
        amount: int,
        action: TransactionAction,
        remarks: str | None = None,
        payment_mode: str = DEFAULT_PAYMENT_MODE,
        processed_by: UUID | None = None,
    ) -> TransactionData:
        """
        Add credits to an officer (renewal, top-up, refund).

        A Deduction action is routed to debit().

        Raises:
            OfficerNotFoundError: Officer doesn't exist
            WriteVerificationError: Transaction row missing after flush
        """
        if action == TransactionAction.DEDUCTION:
            return await self.debit(
                officer_id,
                amount,
                remarks=remarks,
                payment_mode=payment_mode,
                processed_by=processed_by,
            )

        officer = await self._lock_officer_for_update(officer_id)
        if officer is None:
            raise OfficerNotFoundError(officer_id)

        balance_before = officer.credits_remaining
        balance_after, total_after = compute_credit_balances(
            balance_before, officer.total_credits, amount, action
        )
        officer.credits_remaining = balance_after
        officer.total_credits = total_after

        transaction = CreditTransaction(
            officer_id=officer.id,
            officer_name=officer.name,
            action=action.value,
            credits=amount,
            balance_before=balance_before,
            balance_after=balance_after,
            payment_mode=payment_mode,
            remarks=remarks,
            processed_by=processed_by,
        )
        return await self._persist(transaction)

    # ========================================================================
    # Private Helper Methods
    # ========================================================================

    async def _lock_officer_for_update(self, officer_id: UUID) -> Officer | None:
        """Lock officer row for update (SELECT FOR UPDATE)."""
        stmt = select(Officer).where(Officer.id == officer_id).with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def _persist(self, transaction: CreditTransaction) -> TransactionData:
        self.session.add(transaction)
        await self.session.flush()

        verified = await self.session.get(CreditTransaction, transaction.id)
        if verified is None:
            raise WriteVerificationError(f"Credit transaction {transaction.id} not found after insert")

        await self.session.commit()

        return TransactionData(
            transaction_id=verified.id,
            officer_id=verified.officer_id,
            action=TransactionAction(verified.action),
            credits=verified.credits,
            balance_before=verified.balance_before,
            balance_after=verified.balance_after,
            payment_mode=verified.payment_mode,
            remarks=verified.remarks,
            created_at=verified.created_at,
        )
