"""
Shared enumerations for database models.

Using Python enums mapped to database enums ensures that
only valid values can be stored.
"""

import enum


class TransactionType(str, enum.Enum):
    """The four kinds of customer transaction the desk records."""
    CASH_IN = "CASH_IN"
    CASH_OUT = "CASH_OUT"
    BUY = "BUY"
    SELL = "SELL"

    @property
    def is_trade(self) -> bool:
        """Buy/Sell settle against the settlement currency."""
        return self in (TransactionType.BUY, TransactionType.SELL)


class TransactionStatus(str, enum.Enum):
    """COMPLETED -> REVERSED is the only transition."""
    COMPLETED = "COMPLETED"
    REVERSED = "REVERSED"
