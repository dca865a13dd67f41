"""
Reversal engine: undoes a transaction's balance effect.

The inverse is computed from the deltas recorded when the
transaction was created, never re-derived from its type and
amount. The transaction row is kept and marked REVERSED.

A reversal can fail with InsufficientBalanceError: undoing a
Cash In whose money has since been paid out would make the
balance negative. That is surfaced to the caller rather than
forced through, because the ledger then needs an operator.
"""

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from fx_ledger.exceptions import AlreadyReversedError, TransactionNotFoundError
from fx_ledger.logging_config import get_logger
from fx_ledger.models.enums import TransactionStatus
from fx_ledger.models.transaction import Transaction
from fx_ledger.services.account_store import AccountStore
from fx_ledger.services.consistency_guard import ConsistencyGuard

logger = get_logger("services.reversal_engine")


class ReversalEngine:

    def __init__(self, db: Session):
        self.db = db
        self.accounts = AccountStore(db)
        self.guard = ConsistencyGuard(db)

    def reverse(self, transaction_id: int, reversed_by: str) -> Transaction:
        """
        Apply the inverse of a COMPLETED transaction exactly once.

        Raises TransactionNotFoundError, AlreadyReversedError or
        InsufficientBalanceError; on any failure no balance changes.
        """

        def unit() -> Transaction:
            # Re-read inside the unit so a retry sees the current status
            txn = self.db.execute(
                select(Transaction)
                .where(Transaction.id == transaction_id)
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()
            if not txn:
                raise TransactionNotFoundError(transaction_id)
            if txn.status == TransactionStatus.REVERSED:
                raise AlreadyReversedError(transaction_id)

            inverse = sorted(
                ((delta.currency, -delta.amount) for delta in txn.deltas),
                key=lambda leg: leg[0],
            )
            for currency, amount in inverse:
                self.accounts.apply_delta(currency, amount)

            # Conditional flip: a racing reversal that already
            # committed makes this match nothing
            now = datetime.utcnow()
            result = self.db.execute(
                update(Transaction)
                .where(
                    Transaction.id == transaction_id,
                    Transaction.status == TransactionStatus.COMPLETED,
                )
                .values(
                    status=TransactionStatus.REVERSED,
                    reversed_by=reversed_by,
                    reversed_at=now,
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise AlreadyReversedError(transaction_id)

            self.db.refresh(txn)
            return txn

        txn = self.guard.run(unit, operation=f"reverse transaction {transaction_id}")
        logger.info(
            "Transaction reversed",
            extra={
                "transaction_id": transaction_id,
                "reference": txn.reference,
                "reversed_by": reversed_by,
            },
        )
        return txn
