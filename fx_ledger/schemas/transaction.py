"""
Pydantic schemas for transaction operations.

A transaction request is a discriminated union over the four
transaction types. The ``transaction_type`` field selects the
variant, so a Buy can never be mistaken for a Cash In and the
rate-bearing variants are distinct types.

Range and business rules (positive amount, known currency,
rate bounds) are checked by TransactionValidator so that every
violation is reported at once.
"""

from datetime import datetime
from decimal import Decimal
from typing import Literal, Union

from pydantic import BaseModel, Field

from fx_ledger.models.enums import TransactionType, TransactionStatus


class _TransactionRequestBase(BaseModel):
    currency: str = Field(min_length=1, max_length=10)
    amount: Decimal = Field(decimal_places=4)
    customer_name: str = Field(default="", max_length=255)
    customer_email: str = Field(default="", max_length=255)
    notes: str = Field(default="", max_length=2000)
    signature: str = ""


class CashInRequest(_TransactionRequestBase):
    transaction_type: Literal["CASH_IN"]
    # Accepted only so the validator can report it as a violation
    exchange_rate: Decimal | None = None


class CashOutRequest(_TransactionRequestBase):
    transaction_type: Literal["CASH_OUT"]
    exchange_rate: Decimal | None = None


class BuyRequest(_TransactionRequestBase):
    transaction_type: Literal["BUY"]
    exchange_rate: Decimal | None = Field(default=None, decimal_places=6)


class SellRequest(_TransactionRequestBase):
    transaction_type: Literal["SELL"]
    exchange_rate: Decimal | None = Field(default=None, decimal_places=6)


AnyTransactionRequest = Union[CashInRequest, CashOutRequest, BuyRequest, SellRequest]


class TransactionNotesUpdate(BaseModel):
    """Descriptive fields that may change after creation."""
    notes: str | None = Field(default=None, max_length=2000)
    customer_email: str | None = Field(default=None, max_length=255)
    signature: str | None = None


TransactionSortField = Literal[
    "created_at", "amount", "currency", "transaction_type",
    "status", "customer_name", "reference",
]
SortOrder = Literal["asc", "desc"]


class TransactionFilter(BaseModel):
    """Query parameters for listing transactions."""
    currency: str | None = None
    transaction_type: TransactionType | None = None
    status: TransactionStatus | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    search: str | None = None
    sort_by: TransactionSortField = "created_at"
    sort_order: SortOrder = "desc"
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=200)


class BalanceDeltaResponse(BaseModel):
    currency: str
    amount: Decimal

    model_config = {"from_attributes": True}


class TransactionResponse(BaseModel):
    id: int
    reference: str
    transaction_type: TransactionType
    status: TransactionStatus
    currency: str
    amount: Decimal
    exchange_rate: Decimal | None
    amount_settlement: Decimal | None
    customer_name: str
    customer_email: str
    notes: str
    created_by: str
    created_at: datetime
    reversed_by: str | None
    reversed_at: datetime | None
    deltas: list[BalanceDeltaResponse]

    model_config = {"from_attributes": True}


class TransactionListResponse(BaseModel):
    items: list[TransactionResponse]
    total: int
    page: int
    pages: int
    limit: int
