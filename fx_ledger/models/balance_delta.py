"""
Balance delta model.

Each row is one signed change a transaction made to one
currency account. Rows are written in the same unit of work
as the balance change itself and are never modified, so a
reversal can replay them exactly, whatever the effect rules
looked like when the transaction was created.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fx_ledger.models.base import Base


class BalanceDelta(Base):
    __tablename__ = "balance_deltas"

    id: Mapped[int] = mapped_column(primary_key=True)
    transaction_id: Mapped[int] = mapped_column(
        ForeignKey("transactions.id"), nullable=False, index=True
    )
    currency: Mapped[str] = mapped_column(
        String(3), nullable=False
    )
    # Signed: positive credits the account, negative debits it
    amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    transaction: Mapped["Transaction"] = relationship(
        back_populates="deltas"
    )

    def __repr__(self) -> str:
        return f"<BalanceDelta {self.amount:+} {self.currency}>"
