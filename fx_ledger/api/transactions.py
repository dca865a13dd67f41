"""
Transaction API endpoints.
"""

from datetime import datetime

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from fx_ledger.api.errors import http_error, get_current_user
from fx_ledger.exceptions import LedgerError
from fx_ledger.models.base import get_db
from fx_ledger.models.enums import TransactionType, TransactionStatus
from fx_ledger.services.transaction_service import TransactionService, page_count
from fx_ledger.schemas.transaction import (
    AnyTransactionRequest,
    TransactionNotesUpdate,
    TransactionFilter,
    TransactionResponse,
    TransactionListResponse,
    TransactionSortField,
    SortOrder,
)

router = APIRouter(prefix="/transactions", tags=["Transactions"])


@router.post("", response_model=TransactionResponse, status_code=201)
def create_transaction(
    request: AnyTransactionRequest = Body(discriminator="transaction_type"),
    db: Session = Depends(get_db),
    user: str = Depends(get_current_user),
):
    """
    Record a transaction and apply its balance effect.

    Either the transaction and every balance change it causes
    are stored, or nothing is.
    """
    service = TransactionService(db)
    try:
        txn = service.create_transaction(request, created_by=user)
        db.commit()
        return txn
    except LedgerError as e:
        db.rollback()
        raise http_error(e)


@router.get("", response_model=TransactionListResponse)
def list_transactions(
    currency: str | None = None,
    transaction_type: TransactionType | None = None,
    status: TransactionStatus | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    search: str | None = None,
    sort_by: TransactionSortField = "created_at",
    sort_order: SortOrder = "desc",
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=200),
    db: Session = Depends(get_db),
):
    """List transactions with optional filters, newest first by default."""
    filters = TransactionFilter(
        currency=currency,
        transaction_type=transaction_type,
        status=status,
        date_from=date_from,
        date_to=date_to,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
    items, total = TransactionService(db).list_transactions(filters)
    return TransactionListResponse(
        items=[TransactionResponse.model_validate(t) for t in items],
        total=total,
        page=page,
        pages=page_count(total, limit),
        limit=limit,
    )


@router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
):
    """Get transaction details."""
    service = TransactionService(db)
    try:
        return service.get_transaction(transaction_id)
    except LedgerError as e:
        raise http_error(e)


@router.patch("/{transaction_id}", response_model=TransactionResponse)
def edit_transaction(
    transaction_id: int,
    request: TransactionNotesUpdate,
    db: Session = Depends(get_db),
):
    """Edit notes, customer email or signature. Balances are untouched."""
    service = TransactionService(db)
    try:
        txn = service.edit_transaction_notes(transaction_id, request)
        db.commit()
        return txn
    except LedgerError as e:
        db.rollback()
        raise http_error(e)


@router.delete("/{transaction_id}", status_code=204)
def delete_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
    user: str = Depends(get_current_user),
):
    """
    Delete a transaction by reversing its balance effect.

    The record is kept with status REVERSED.
    """
    service = TransactionService(db)
    try:
        service.delete_transaction(transaction_id, deleted_by=user)
        db.commit()
    except LedgerError as e:
        db.rollback()
        raise http_error(e)
