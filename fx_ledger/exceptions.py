"""
Typed exceptions for ledger operations.

Callers catch by type, never by message. Every exception
carries a machine-readable ``code`` and the structured data
that explains it, so the API layer can render a response
without parsing strings.

    LedgerError
    +-- TransactionValidationError   VALIDATION_FAILED
    +-- NotFoundError
    |   +-- AccountNotFoundError     ACCOUNT_NOT_FOUND
    |   +-- TransactionNotFoundError TRANSACTION_NOT_FOUND
    +-- InsufficientBalanceError     INSUFFICIENT_BALANCE
    +-- AlreadyReversedError         ALREADY_REVERSED
    +-- ConcurrencyConflictError     CONCURRENCY_CONFLICT
    +-- PersistenceError             PERSISTENCE_ERROR
"""

from decimal import Decimal


class LedgerError(Exception):
    """Base class for every error raised by the ledger."""

    code: str = "LEDGER_ERROR"

    def to_dict(self) -> dict:
        return {"code": self.code, "detail": str(self)}


class TransactionValidationError(LedgerError):
    """The request broke one or more input rules. Nothing was written."""

    code = "VALIDATION_FAILED"

    def __init__(self, violations: list[str]):
        self.violations = list(violations)
        super().__init__("; ".join(self.violations))

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["violations"] = self.violations
        return data


class NotFoundError(LedgerError):
    code = "NOT_FOUND"


class AccountNotFoundError(NotFoundError):
    code = "ACCOUNT_NOT_FOUND"

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"Account for {currency} not found")


class TransactionNotFoundError(NotFoundError):
    code = "TRANSACTION_NOT_FOUND"

    def __init__(self, transaction_id: int):
        self.transaction_id = transaction_id
        super().__init__(f"Transaction {transaction_id} not found")


class InsufficientBalanceError(LedgerError):
    """A debit would take an account below zero. No leg was applied."""

    code = "INSUFFICIENT_BALANCE"

    def __init__(self, currency: str, available: Decimal, requested: Decimal):
        self.currency = currency
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient {currency} balance: "
            f"available={available}, requested={requested}"
        )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update(
            currency=self.currency,
            available=str(self.available),
            requested=str(self.requested),
        )
        return data


class AlreadyReversedError(LedgerError):
    code = "ALREADY_REVERSED"

    def __init__(self, transaction_id: int):
        self.transaction_id = transaction_id
        super().__init__(f"Transaction {transaction_id} is already reversed")


class ConcurrencyConflictError(LedgerError):
    """Optimistic concurrency retries were exhausted. Safe to retry."""

    code = "CONCURRENCY_CONFLICT"

    def __init__(self, resource: str, attempts: int):
        self.resource = resource
        self.attempts = attempts
        super().__init__(
            f"Concurrent modification of {resource}; "
            f"gave up after {attempts} attempts"
        )


class PersistenceError(LedgerError):
    """The storage layer failed. Details are logged, not returned."""

    code = "PERSISTENCE_ERROR"

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Storage failure during {operation}")

    def to_dict(self) -> dict:
        return {"code": self.code, "detail": "Internal storage error"}
