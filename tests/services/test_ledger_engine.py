"""
Tests for LedgerEngine: the effect table and two-leg atomicity.

Requests here skip the validator, so the engine's own
guarantees are tested in isolation.
"""

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from fx_ledger.exceptions import InsufficientBalanceError
from fx_ledger.models.balance_delta import BalanceDelta
from fx_ledger.models.enums import TransactionStatus, TransactionType
from fx_ledger.models.transaction import Transaction
from fx_ledger.schemas.transaction import (
    BuyRequest,
    CashInRequest,
    CashOutRequest,
    SellRequest,
)
from fx_ledger.services.account_store import AccountStore
from fx_ledger.services.ledger_engine import Leg, LedgerEngine, settlement_amount

CUSTOMER = {"customer_name": "Asha", "customer_email": "asha@example.com"}


def cash_in(currency, amount):
    return CashInRequest(
        transaction_type="CASH_IN", currency=currency,
        amount=Decimal(amount), **CUSTOMER,
    )


def cash_out(currency, amount):
    return CashOutRequest(
        transaction_type="CASH_OUT", currency=currency,
        amount=Decimal(amount), **CUSTOMER,
    )


def buy(currency, amount, rate):
    return BuyRequest(
        transaction_type="BUY", currency=currency,
        amount=Decimal(amount), exchange_rate=Decimal(rate), **CUSTOMER,
    )


def sell(currency, amount, rate):
    return SellRequest(
        transaction_type="SELL", currency=currency,
        amount=Decimal(amount), exchange_rate=Decimal(rate), **CUSTOMER,
    )


def transaction_count(db_session):
    return db_session.execute(select(func.count(Transaction.id))).scalar_one()


class TestSettlementAmount:

    def test_exact(self):
        assert settlement_amount(Decimal("100"), Decimal("6.80")) == Decimal("680.00")

    def test_rounds_half_up_to_cents(self):
        assert settlement_amount(Decimal("1.5"), Decimal("6.7750")) == Decimal("10.16")
        assert settlement_amount(Decimal("0.01"), Decimal("0.5")) == Decimal("0.01")


class TestPlan:

    def test_cash_in(self, db_session):
        legs = LedgerEngine(db_session).plan(cash_in("USD", "100"))
        assert legs == [Leg("USD", Decimal("100"))]

    def test_cash_out(self, db_session):
        legs = LedgerEngine(db_session).plan(cash_out("USD", "100"))
        assert legs == [Leg("USD", Decimal("-100"))]

    def test_buy(self, db_session):
        legs = LedgerEngine(db_session).plan(buy("USD", "100", "6.80"))
        assert legs == [Leg("USD", Decimal("100")), Leg("TTD", Decimal("-680.00"))]

    def test_sell(self, db_session):
        legs = LedgerEngine(db_session).plan(sell("USD", "50", "6.75"))
        assert legs == [Leg("USD", Decimal("-50")), Leg("TTD", Decimal("337.50"))]


class TestRecord:

    def test_cash_in_records_transaction(self, db_session, seed_accounts):
        seed_accounts(TTD="0", USD="0")
        txn = LedgerEngine(db_session).record(cash_in("USD", "100"), "teller-1")
        db_session.commit()

        assert txn.id is not None
        assert txn.status == TransactionStatus.COMPLETED
        assert txn.transaction_type == TransactionType.CASH_IN
        assert txn.exchange_rate is None
        assert txn.amount_settlement is None
        assert txn.created_by == "teller-1"
        assert txn.reference.startswith("TX")
        assert AccountStore(db_session).get_balance("USD") == Decimal("100")

    def test_buy_records_both_deltas(self, db_session, seed_accounts):
        seed_accounts(TTD="1000", USD="0")
        txn = LedgerEngine(db_session).record(buy("USD", "100", "6.80"), "teller-1")
        db_session.commit()

        assert txn.amount_settlement == Decimal("680.00")
        assert txn.exchange_rate == Decimal("6.80")
        assert sorted((d.currency, d.amount) for d in txn.deltas) == [
            ("TTD", Decimal("-680.00")),
            ("USD", Decimal("100")),
        ]
        store = AccountStore(db_session)
        assert store.get_balance("TTD") == Decimal("320")
        assert store.get_balance("USD") == Decimal("100")

    def test_insufficient_single_leg_writes_nothing(self, db_session, seed_accounts):
        seed_accounts(TTD="0", USD="10")
        with pytest.raises(InsufficientBalanceError):
            LedgerEngine(db_session).record(cash_out("USD", "10.01"), "teller-1")
        db_session.commit()

        assert AccountStore(db_session).get_balance("USD") == Decimal("10")
        assert transaction_count(db_session) == 0

    def test_failed_second_leg_undoes_first(self, db_session, seed_accounts):
        """
        A Sell credits TTD before it debits USD. When the USD debit
        fails the TTD credit must not survive.
        """
        seed_accounts(TTD="500", USD="40")
        with pytest.raises(InsufficientBalanceError) as exc:
            LedgerEngine(db_session).record(sell("USD", "50", "6.75"), "teller-1")
        db_session.commit()

        assert exc.value.currency == "USD"
        store = AccountStore(db_session)
        assert store.get_balance("TTD") == Decimal("500")
        assert store.get_balance("USD") == Decimal("40")
        assert transaction_count(db_session) == 0
        assert db_session.execute(
            select(func.count(BalanceDelta.id))
        ).scalar_one() == 0

    def test_failed_record_keeps_earlier_work_in_session(
        self, db_session, seed_accounts
    ):
        """Only the failed unit is rolled back, not the caller's transaction."""
        seed_accounts(TTD="0", USD="0")
        engine = LedgerEngine(db_session)
        engine.record(cash_in("USD", "30"), "teller-1")
        with pytest.raises(InsufficientBalanceError):
            engine.record(cash_out("USD", "31"), "teller-1")
        db_session.commit()

        assert AccountStore(db_session).get_balance("USD") == Decimal("30")
        assert transaction_count(db_session) == 1

    def test_references_are_unique(self, db_session, seed_accounts):
        seed_accounts(TTD="0", USD="0")
        engine = LedgerEngine(db_session)
        references = {
            engine.record(cash_in("USD", "1"), "teller-1").reference
            for _ in range(20)
        }
        assert len(references) == 20
