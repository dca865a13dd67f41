"""
Transaction validator: input rules checked before any write.

Every rule is evaluated and all violations are reported
together. The validator has no side effects and is advisory:
the authoritative balance check is the conditional update in
AccountStore.
"""

import re

from sqlalchemy.orm import Session

from fx_ledger.config import get_settings
from fx_ledger.exceptions import TransactionValidationError
from fx_ledger.models.enums import TransactionType
from fx_ledger.schemas.transaction import AnyTransactionRequest
from fx_ledger.services.account_store import AccountStore, normalize_currency
from fx_ledger.services.ledger_engine import settlement_amount

EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value))


class TransactionValidator:

    def __init__(self, db: Session):
        self.db = db
        self.accounts = AccountStore(db)
        settings = get_settings()
        self.settlement_currency = settings.SETTLEMENT_CURRENCY
        self.max_amount = settings.MAX_AMOUNT
        self.max_exchange_rate = settings.MAX_EXCHANGE_RATE

    def validate(self, request: AnyTransactionRequest) -> AnyTransactionRequest:
        """
        Return a normalized copy of the request.

        Raises TransactionValidationError listing every rule
        the request breaks.
        """
        normalized = request.model_copy(update={
            "currency": normalize_currency(request.currency),
            "customer_name": request.customer_name.strip(),
            "customer_email": request.customer_email.strip().lower(),
            "notes": request.notes.strip(),
        })
        violations = self._check(normalized)
        if violations:
            raise TransactionValidationError(violations)
        return normalized

    def _check(self, request: AnyTransactionRequest) -> list[str]:
        violations: list[str] = []
        transaction_type = TransactionType(request.transaction_type)

        # --- Amount ---
        if request.amount <= 0:
            violations.append("amount must be greater than 0")
        elif request.amount > self.max_amount:
            violations.append(f"amount must not exceed {self.max_amount}")

        # --- Currency ---
        if not request.currency:
            violations.append("currency is required")
        elif not self.accounts.exists(request.currency):
            violations.append(f"currency {request.currency} has no account")

        # --- Exchange rate ---
        rate = request.exchange_rate
        if transaction_type.is_trade:
            if rate is None:
                violations.append(
                    f"exchange_rate is required for {transaction_type.value}"
                )
            elif rate <= 0:
                violations.append("exchange_rate must be greater than 0")
            elif rate > self.max_exchange_rate:
                violations.append(
                    f"exchange_rate must not exceed {self.max_exchange_rate}"
                )
            elif request.amount > 0 and settlement_amount(request.amount, rate) == 0:
                violations.append(
                    f"settlement amount of {request.amount} at rate {rate} "
                    f"rounds to zero"
                )
            if request.currency == self.settlement_currency:
                violations.append(
                    f"cannot {transaction_type.value.lower()} the settlement "
                    f"currency {self.settlement_currency}"
                )
        elif rate is not None:
            violations.append(
                f"exchange_rate must not be set for {transaction_type.value}"
            )

        # --- Customer ---
        if not request.customer_name:
            violations.append("customer_name is required")
        if not request.customer_email:
            violations.append("customer_email is required")
        elif not is_valid_email(request.customer_email):
            violations.append(
                f"customer_email '{request.customer_email}' is not a valid email address"
            )

        return violations
