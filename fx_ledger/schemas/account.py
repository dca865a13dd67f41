"""
Pydantic schemas for currency accounts.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel


class AccountResponse(BaseModel):
    id: int
    currency: str
    balance: Decimal
    version: int
    updated_at: datetime

    model_config = {"from_attributes": True}


class AccountBalanceResponse(BaseModel):
    currency: str
    balance: Decimal
