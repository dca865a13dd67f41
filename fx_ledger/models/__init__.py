"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from fx_ledger.models.base import Base
from fx_ledger.models.enums import TransactionType, TransactionStatus
from fx_ledger.models.account import Account
from fx_ledger.models.transaction import Transaction
from fx_ledger.models.balance_delta import BalanceDelta

__all__ = [
    "Base",
    "TransactionType",
    "TransactionStatus",
    "Account",
    "Transaction",
    "BalanceDelta",
]
