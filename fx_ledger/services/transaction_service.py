"""
Transaction service: the operations other layers call.

Each write operation:
1. Validates the request (all rule violations at once)
2. Hands it to LedgerEngine / ReversalEngine, which apply the
   balance effect and persist the record as one atomic unit
3. Returns the stored Transaction

The caller controls the commit, exactly as with every other
service: on any exception it should roll back.
"""

import math
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select, func, or_
from sqlalchemy.orm import Session

from fx_ledger.exceptions import (
    TransactionNotFoundError,
    TransactionValidationError,
)
from fx_ledger.logging_config import get_logger
from fx_ledger.models.transaction import Transaction
from fx_ledger.schemas.transaction import (
    AnyTransactionRequest,
    TransactionFilter,
    TransactionNotesUpdate,
)
from fx_ledger.services.account_store import AccountStore, normalize_currency
from fx_ledger.services.ledger_engine import LedgerEngine
from fx_ledger.services.reversal_engine import ReversalEngine
from fx_ledger.services.transaction_validator import (
    TransactionValidator,
    is_valid_email,
)

logger = get_logger("services.transaction_service")

SORT_COLUMNS = {
    "created_at": Transaction.created_at,
    "amount": Transaction.amount,
    "currency": Transaction.currency,
    "transaction_type": Transaction.transaction_type,
    "status": Transaction.status,
    "customer_name": Transaction.customer_name,
    "reference": Transaction.reference,
}


class TransactionService:

    def __init__(self, db: Session):
        self.db = db
        self.accounts = AccountStore(db)
        self.validator = TransactionValidator(db)
        self.ledger = LedgerEngine(db)
        self.reversals = ReversalEngine(db)

    def create_transaction(
        self, request: AnyTransactionRequest, created_by: str
    ) -> Transaction:
        """Validate a request and record it with its balance effect."""
        try:
            normalized = self.validator.validate(request)
        except TransactionValidationError as e:
            logger.info(
                "Transaction rejected",
                extra={"violations": e.violations, "created_by": created_by},
            )
            raise
        return self.ledger.record(normalized, created_by)

    def edit_transaction_notes(
        self, transaction_id: int, update: TransactionNotesUpdate
    ) -> Transaction:
        """
        Change the descriptive fields of a transaction.

        Financial fields are not part of the update schema, so
        an edit can never change a balance.
        """
        txn = self.get_transaction(transaction_id)

        email = None
        if update.customer_email is not None:
            email = update.customer_email.strip().lower()
            if not is_valid_email(email):
                raise TransactionValidationError([
                    f"customer_email '{update.customer_email}' is not a valid email address"
                ])

        if update.notes is not None:
            txn.notes = update.notes.strip()
        if email is not None:
            txn.customer_email = email
        if update.signature is not None:
            txn.signature = update.signature

        self.db.flush()
        logger.info(
            "Transaction details edited",
            extra={
                "transaction_id": txn.id,
                "fields": sorted(update.model_dump(exclude_none=True)),
            },
        )
        return txn

    def delete_transaction(self, transaction_id: int, deleted_by: str) -> None:
        """Reverse a transaction's balance effect and mark it REVERSED."""
        self.reversals.reverse(transaction_id, deleted_by)

    def get_account_balance(self, currency: str) -> Decimal:
        return self.accounts.get_balance(currency)

    def get_transaction(self, transaction_id: int) -> Transaction:
        """Get a transaction by ID."""
        txn = self.db.get(Transaction, transaction_id, populate_existing=True)
        if not txn:
            raise TransactionNotFoundError(transaction_id)
        return txn

    def list_transactions(
        self, filters: TransactionFilter
    ) -> tuple[list[Transaction], int]:
        """
        Return one page of transactions and the total number
        matching the filters. Newest first unless the filters
        ask for another order.
        """
        conditions = []
        if filters.currency:
            conditions.append(
                Transaction.currency == normalize_currency(filters.currency)
            )
        if filters.transaction_type:
            conditions.append(
                Transaction.transaction_type == filters.transaction_type
            )
        if filters.status:
            conditions.append(Transaction.status == filters.status)
        if filters.date_from:
            conditions.append(Transaction.created_at >= filters.date_from)
        if filters.date_to:
            date_to = filters.date_to
            # A bare date means the whole of that day
            if date_to.time() == datetime.min.time():
                date_to = date_to.replace(hour=23, minute=59, second=59, microsecond=999999)
            conditions.append(Transaction.created_at <= date_to)
        if filters.search:
            pattern = f"%{filters.search.strip()}%"
            conditions.append(or_(
                Transaction.customer_name.ilike(pattern),
                Transaction.customer_email.ilike(pattern),
                Transaction.reference.ilike(pattern),
            ))

        total = self.db.execute(
            select(func.count(Transaction.id)).where(*conditions)
        ).scalar_one()

        items = self.db.execute(
            select(Transaction)
            .where(*conditions)
            .order_by(*self._ordering(filters))
            .offset((filters.page - 1) * filters.limit)
            .limit(filters.limit)
        ).scalars().all()
        return list(items), total

    @staticmethod
    def _ordering(filters: TransactionFilter) -> list:
        """Sort column plus id as a tie-breaker, both in the requested direction."""
        column = SORT_COLUMNS[filters.sort_by]
        if filters.sort_order == "asc":
            return [column.asc(), Transaction.id.asc()]
        return [column.desc(), Transaction.id.desc()]


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if total else 0
