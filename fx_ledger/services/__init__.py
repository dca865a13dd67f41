"""Business logic services."""

from fx_ledger.services.account_store import AccountStore
from fx_ledger.services.consistency_guard import ConsistencyGuard
from fx_ledger.services.transaction_validator import TransactionValidator
from fx_ledger.services.ledger_engine import LedgerEngine
from fx_ledger.services.reversal_engine import ReversalEngine
from fx_ledger.services.transaction_service import TransactionService

__all__ = [
    "AccountStore",
    "ConsistencyGuard",
    "TransactionValidator",
    "LedgerEngine",
    "ReversalEngine",
    "TransactionService",
]
