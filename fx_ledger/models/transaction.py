"""
Transaction model.

A customer transaction recorded at the desk. The financial
fields (type, currency, amount, exchange rate) are written
once, together with the balance effect they cause. Only the
descriptive fields may change afterwards.

Deleting a transaction does not remove the row: it is marked
REVERSED and kept for audit.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, DateTime, Numeric, Text,
    Enum as SAEnum, Index,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fx_ledger.models.base import Base
from fx_ledger.models.enums import TransactionType, TransactionStatus


class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_currency_type", "currency", "transaction_type"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    reference: Mapped[str] = mapped_column(
        String(20), unique=True, nullable=False, index=True
    )
    transaction_type: Mapped[TransactionType] = mapped_column(
        SAEnum(
            TransactionType,
            name="transaction_type_enum",
            create_constraint=True,
        ),
        nullable=False,
    )
    status: Mapped[TransactionStatus] = mapped_column(
        SAEnum(
            TransactionStatus,
            name="transaction_status_enum",
            create_constraint=True,
        ),
        nullable=False,
        default=TransactionStatus.COMPLETED,
    )
    currency: Mapped[str] = mapped_column(
        String(3), nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False
    )
    exchange_rate: Mapped[Decimal | None] = mapped_column(
        Numeric(19, 6), nullable=True
    )
    amount_settlement: Mapped[Decimal | None] = mapped_column(
        Numeric(19, 4), nullable=True
    )
    customer_name: Mapped[str] = mapped_column(
        String(255), nullable=False
    )
    customer_email: Mapped[str] = mapped_column(
        String(255), nullable=False
    )
    notes: Mapped[str] = mapped_column(
        Text, nullable=False, default=""
    )
    signature: Mapped[str] = mapped_column(
        Text, nullable=False, default=""
    )
    created_by: Mapped[str] = mapped_column(
        String(100), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )
    reversed_by: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )
    reversed_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )

    # The legs actually applied at creation, in application order
    deltas: Mapped[list["BalanceDelta"]] = relationship(
        back_populates="transaction",
        order_by="BalanceDelta.id",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return (
            f"<Transaction {self.reference} {self.transaction_type.value} "
            f"{self.amount} {self.currency} ({self.status.value})>"
        )
