"""
Hypothesis Property-Based Tests for the credit ledger arithmetic.

Covers the balance invariants without database mocking.
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from intel_lookup.models.api import TransactionAction
from intel_lookup.services.ledger import compute_credit_balances, compute_debit_balance

# ============================================================================
# Hypothesis Strategies
# ============================================================================

balances = st.integers(min_value=0, max_value=1_000_000)
amounts = st.integers(min_value=0, max_value=1_000_000)
negative_amounts = st.integers(max_value=-1)
credit_actions = st.sampled_from(
    [TransactionAction.RENEWAL, TransactionAction.TOP_UP, TransactionAction.REFUND]
)


class TestDebitProperties:
    @given(current=balances, amount=amounts)
    def test_balance_never_negative(self, current: int, amount: int):
        new_balance, _ = compute_debit_balance(current, amount)
        assert new_balance >= 0

    @given(current=balances, amount=amounts)
    def test_clamped_iff_amount_exceeds_balance(self, current: int, amount: int):
        new_balance, clamped = compute_debit_balance(current, amount)
        assert clamped == (amount > current)
        if not clamped:
            assert new_balance == current - amount

    @given(current=balances, amount=negative_amounts)
    def test_negative_amount_rejected(self, current: int, amount: int):
        with pytest.raises(ValueError):
            compute_debit_balance(current, amount)

    @given(current=balances, first=amounts, second=amounts)
    def test_sequential_debits_are_monotonic(self, current: int, first: int, second: int):
        after_first, _ = compute_debit_balance(current, first)
        after_second, _ = compute_debit_balance(after_first, second)
        assert after_second <= after_first <= current


class TestCreditProperties:
    @given(remaining=balances, total=balances, amount=amounts, action=credit_actions)
    def test_balance_grows_by_amount(
        self, remaining: int, total: int, amount: int, action: TransactionAction
    ):
        new_remaining, _ = compute_credit_balances(remaining, total, amount, action)
        assert new_remaining == remaining + amount

    @given(remaining=balances, total=balances, amount=amounts, action=credit_actions)
    def test_allotment_grows_except_on_refund(
        self, remaining: int, total: int, amount: int, action: TransactionAction
    ):
        _, new_total = compute_credit_balances(remaining, total, amount, action)
        if action == TransactionAction.REFUND:
            assert new_total == total
        else:
            assert new_total == total + amount

    @given(remaining=balances, total=balances, amount=negative_amounts, action=credit_actions)
    def test_negative_amount_rejected(
        self, remaining: int, total: int, amount: int, action: TransactionAction
    ):
        with pytest.raises(ValueError):
            compute_credit_balances(remaining, total, amount, action)
