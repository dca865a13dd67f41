"""
Account store: owns the per-currency balance records.

Balances change only through apply_delta(), which is a
compare-and-swap: the balance and version are read, the new
balance is checked, and the UPDATE only matches if the version
is still the one that was read. A concurrent writer that got
there first makes the UPDATE match zero rows, and the read is
redone against the fresh balance. A balance check is therefore
never made against a stale read.

Like the other services, the store works inside the caller's
session and never commits.
"""

from datetime import datetime
from decimal import Decimal
from typing import Iterable

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from fx_ledger.config import get_settings
from fx_ledger.exceptions import (
    AccountNotFoundError,
    ConcurrencyConflictError,
    InsufficientBalanceError,
)
from fx_ledger.logging_config import get_logger
from fx_ledger.models.account import Account

logger = get_logger("services.account_store")


def normalize_currency(currency: str) -> str:
    return currency.strip().upper()


class AccountStore:

    def __init__(self, db: Session, max_retries: int | None = None):
        self.db = db
        self.max_retries = (
            get_settings().CAS_MAX_RETRIES if max_retries is None else max_retries
        )
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")

    # --- Reads ---

    def get_account(self, currency: str) -> Account:
        """Get an account by currency code, refreshed from the database."""
        code = normalize_currency(currency)
        account = self.db.execute(
            select(Account)
            .where(Account.currency == code)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if not account:
            raise AccountNotFoundError(code)
        return account

    def exists(self, currency: str) -> bool:
        code = normalize_currency(currency)
        return self.db.execute(
            select(Account.id).where(Account.currency == code)
        ).first() is not None

    def get_balance(self, currency: str) -> Decimal:
        return self._read(normalize_currency(currency)).balance

    def list_accounts(self) -> list[Account]:
        """All accounts, ordered by currency code."""
        accounts = self.db.execute(
            select(Account)
            .order_by(Account.currency)
            .execution_options(populate_existing=True)
        ).scalars().all()
        return list(accounts)

    # --- Bootstrap ---

    def create_account(
        self, currency: str, initial_balance: Decimal = Decimal("0")
    ) -> Account:
        """
        Create the account for a currency if it does not exist.

        Returns the existing account unchanged when there is one,
        so bootstrap can run on every start.
        """
        code = normalize_currency(currency)
        if len(code) != 3 or not code.isalpha():
            raise ValueError(f"Invalid currency code '{currency}'")
        if initial_balance < 0:
            raise ValueError("Initial balance cannot be negative")

        existing = self.db.execute(
            select(Account).where(Account.currency == code)
        ).scalar_one_or_none()
        if existing:
            return existing

        account = Account(currency=code, balance=initial_balance, version=0)
        self.db.add(account)
        self.db.flush()
        logger.info(
            "Account created",
            extra={"currency": code, "balance": initial_balance},
        )
        return account

    def ensure_accounts(self, currencies: Iterable[str]) -> list[Account]:
        return [self.create_account(currency) for currency in currencies]

    # --- Writes ---

    def apply_delta(self, currency: str, delta: Decimal) -> Decimal:
        """
        Add ``delta`` to the balance and return the new balance.

        Raises InsufficientBalanceError if the result would be
        negative (the stored balance is left untouched), and
        ConcurrencyConflictError if the version kept moving
        under us for max_retries attempts.
        """
        code = normalize_currency(currency)
        delta = Decimal(delta)
        if delta == 0:
            raise ValueError("Balance delta must be non-zero")

        for attempt in range(1, self.max_retries + 1):
            current = self._read(code)
            new_balance = current.balance + delta
            if new_balance < 0:
                raise InsufficientBalanceError(code, current.balance, -delta)

            result = self.db.execute(
                update(Account)
                .where(
                    Account.id == current.id,
                    Account.version == current.version,
                )
                .values(
                    balance=new_balance,
                    version=current.version + 1,
                    updated_at=datetime.utcnow(),
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 1:
                logger.debug(
                    "Balance updated",
                    extra={
                        "currency": code,
                        "delta": delta,
                        "balance": new_balance,
                        "version": current.version + 1,
                    },
                )
                return new_balance

            logger.info(
                "Stale balance read, retrying",
                extra={"currency": code, "attempt": attempt},
            )

        logger.warning(
            "Balance update retries exhausted",
            extra={"currency": code, "attempts": self.max_retries},
        )
        raise ConcurrencyConflictError(f"account {code}", self.max_retries)

    def _read(self, code: str):
        """Read (id, balance, version) straight from the database."""
        row = self.db.execute(
            select(Account.id, Account.balance, Account.version)
            .where(Account.currency == code)
        ).one_or_none()
        if row is None:
            raise AccountNotFoundError(code)
        return row
