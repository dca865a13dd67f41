"""
Currency account API endpoints (read-only).
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fx_ledger.api.errors import http_error
from fx_ledger.exceptions import LedgerError
from fx_ledger.models.base import get_db
from fx_ledger.services.account_store import AccountStore
from fx_ledger.schemas.account import AccountResponse, AccountBalanceResponse

router = APIRouter(prefix="/accounts", tags=["Accounts"])


@router.get("", response_model=list[AccountResponse])
def list_accounts(db: Session = Depends(get_db)):
    """All currency accounts and their balances."""
    return AccountStore(db).list_accounts()


@router.get("/{currency}", response_model=AccountResponse)
def get_account(
    currency: str,
    db: Session = Depends(get_db),
):
    """Get one currency account."""
    try:
        return AccountStore(db).get_account(currency)
    except LedgerError as e:
        raise http_error(e)


@router.get("/{currency}/balance", response_model=AccountBalanceResponse)
def get_account_balance(
    currency: str,
    db: Session = Depends(get_db),
):
    """Current balance of a currency account."""
    store = AccountStore(db)
    try:
        balance = store.get_balance(currency)
    except LedgerError as e:
        raise http_error(e)
    return AccountBalanceResponse(currency=currency.strip().upper(), balance=balance)
