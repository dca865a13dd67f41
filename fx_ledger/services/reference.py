"""
Transaction reference generation.

References look like ``TX20240115A1B2C3``: the creation date
followed by six random upper-case alphanumerics.
"""

import secrets
import string
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from fx_ledger.exceptions import PersistenceError
from fx_ledger.logging_config import get_logger
from fx_ledger.models.transaction import Transaction

logger = get_logger("services.reference")

ALPHABET = string.ascii_uppercase + string.digits
SUFFIX_LENGTH = 6
MAX_ATTEMPTS = 10


def generate_reference(db: Session, now: datetime | None = None) -> str:
    """
    Return a reference not yet used by any transaction.

    The unique constraint on transactions.reference is the
    final guard; this check only makes a collision unlikely.
    """
    date_part = (now or datetime.utcnow()).strftime("%Y%m%d")

    for _ in range(MAX_ATTEMPTS):
        suffix = "".join(secrets.choice(ALPHABET) for _ in range(SUFFIX_LENGTH))
        reference = f"TX{date_part}{suffix}"
        exists = db.execute(
            select(Transaction.id).where(Transaction.reference == reference)
        ).first()
        if exists is None:
            return reference

    logger.error(
        "Reference space exhausted",
        extra={"date": date_part, "attempts": MAX_ATTEMPTS},
    )
    raise PersistenceError("reference generation")
