"""
Mapping from ledger exceptions to HTTP responses.
"""

from fastapi import HTTPException, Header

from fx_ledger.exceptions import (
    LedgerError,
    TransactionValidationError,
    NotFoundError,
    InsufficientBalanceError,
    AlreadyReversedError,
    ConcurrencyConflictError,
)

STATUS_CODES: list[tuple[type[LedgerError], int]] = [
    (TransactionValidationError, 400),
    (NotFoundError, 404),
    # 422 stays with FastAPI for malformed request bodies
    (InsufficientBalanceError, 409),
    (AlreadyReversedError, 409),
    (ConcurrencyConflictError, 409),
]


def http_error(error: LedgerError) -> HTTPException:
    """Build the HTTPException for a ledger error (500 if unmapped)."""
    for error_type, status_code in STATUS_CODES:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=error.to_dict())
    return HTTPException(status_code=500, detail=error.to_dict())


def get_current_user(x_user_id: str = Header(default="system")) -> str:
    """
    Identity of the caller, as supplied by the auth layer in front
    of this service.
    """
    return x_user_id
