"""
Ledger engine: the core of the desk's bookkeeping.

This service turns a validated transaction request into
balance changes and records them. It enforces:
1. The effect of each transaction type is fixed by the
   effect table below
2. Every leg of a transaction is applied, or none is
3. The Transaction row and the deltas it caused are written
   in the same unit of work as the balance changes
4. No balance ever goes below zero

Effect table (S = settlement currency):

    CASH_IN   currency +amount
    CASH_OUT  currency -amount
    BUY       currency +amount   S -amount_settlement
    SELL      currency -amount   S +amount_settlement

No other service changes balances for a new transaction.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy.orm import Session

from fx_ledger.config import get_settings
from fx_ledger.logging_config import get_logger
from fx_ledger.models.balance_delta import BalanceDelta
from fx_ledger.models.enums import TransactionType, TransactionStatus
from fx_ledger.models.transaction import Transaction
from fx_ledger.services.account_store import AccountStore
from fx_ledger.services.consistency_guard import ConsistencyGuard
from fx_ledger.services.reference import generate_reference
from fx_ledger.schemas.transaction import AnyTransactionRequest

logger = get_logger("services.ledger_engine")

CENTS = Decimal("0.01")


@dataclass(frozen=True)
class Leg:
    """One signed balance change on one currency account."""
    currency: str
    amount: Decimal


def settlement_amount(amount: Decimal, exchange_rate: Decimal) -> Decimal:
    """Settlement-currency value of a trade, rounded half-up to cents."""
    return (amount * exchange_rate).quantize(CENTS, rounding=ROUND_HALF_UP)


class LedgerEngine:
    """
    Applies new transactions to the ledger.

    Takes the caller's session; the caller commits.
    """

    def __init__(self, db: Session):
        self.db = db
        self.accounts = AccountStore(db)
        self.guard = ConsistencyGuard(db)
        self.settlement_currency = get_settings().SETTLEMENT_CURRENCY

    def plan(self, request: AnyTransactionRequest) -> list[Leg]:
        """Map a request to the legs it applies."""
        transaction_type = TransactionType(request.transaction_type)
        amount = request.amount

        if transaction_type == TransactionType.CASH_IN:
            return [Leg(request.currency, amount)]
        if transaction_type == TransactionType.CASH_OUT:
            return [Leg(request.currency, -amount)]

        settled = settlement_amount(amount, request.exchange_rate)
        if transaction_type == TransactionType.BUY:
            return [
                Leg(request.currency, amount),
                Leg(self.settlement_currency, -settled),
            ]
        return [
            Leg(request.currency, -amount),
            Leg(self.settlement_currency, settled),
        ]

    def record(
        self, request: AnyTransactionRequest, created_by: str
    ) -> Transaction:
        """
        Apply a validated request and persist it as COMPLETED.

        Raises InsufficientBalanceError if any leg would make a
        balance negative; in that case no leg is applied and no
        transaction is stored.
        """
        legs = self.plan(request)
        transaction_type = TransactionType(request.transaction_type)

        def unit() -> Transaction:
            # Fixed currency order keeps row-lock order consistent
            # between a Buy and a Sell racing on the same pair
            for leg in sorted(legs, key=lambda leg: leg.currency):
                self.accounts.apply_delta(leg.currency, leg.amount)

            txn = Transaction(
                reference=generate_reference(self.db),
                transaction_type=transaction_type,
                status=TransactionStatus.COMPLETED,
                currency=request.currency,
                amount=request.amount,
                exchange_rate=(
                    request.exchange_rate if transaction_type.is_trade else None
                ),
                amount_settlement=(
                    settlement_amount(request.amount, request.exchange_rate)
                    if transaction_type.is_trade else None
                ),
                customer_name=request.customer_name,
                customer_email=request.customer_email,
                notes=request.notes,
                signature=request.signature,
                created_by=created_by,
                deltas=[
                    BalanceDelta(currency=leg.currency, amount=leg.amount)
                    for leg in legs
                ],
            )
            self.db.add(txn)
            self.db.flush()
            return txn

        txn = self.guard.run(unit, operation=f"record {transaction_type.value}")
        logger.info(
            "Transaction recorded",
            extra={
                "reference": txn.reference,
                "type": transaction_type.value,
                "currency": txn.currency,
                "amount": txn.amount,
                "legs": [(leg.currency, leg.amount) for leg in legs],
                "created_by": created_by,
            },
        )
        return txn
