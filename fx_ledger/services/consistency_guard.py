"""
Consistency guard: the atomic-unit and retry policy.

Every ledger mutation runs through run(). The unit of work is
executed inside a SAVEPOINT, so if any step fails (one leg of a
trade has insufficient funds, the insert fails, anything) the
whole unit is rolled back and no account is left half-applied.

Optimistic concurrency conflicts roll back the savepoint and
rerun the unit from the start, a bounded number of times.
Storage failures are never retried here: they are logged with
context and surfaced as PersistenceError.
"""

import time
from typing import Callable, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from fx_ledger.config import get_settings
from fx_ledger.exceptions import ConcurrencyConflictError, PersistenceError
from fx_ledger.logging_config import get_logger

logger = get_logger("services.consistency_guard")

T = TypeVar("T")


class ConsistencyGuard:

    def __init__(
        self,
        db: Session,
        max_attempts: int | None = None,
        backoff_seconds: float | None = None,
    ):
        settings = get_settings()
        self.db = db
        self.max_attempts = (
            settings.UNIT_MAX_ATTEMPTS if max_attempts is None else max_attempts
        )
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.backoff_seconds = (
            settings.RETRY_BACKOFF_SECONDS
            if backoff_seconds is None else backoff_seconds
        )

    def run(self, unit: Callable[[], T], operation: str) -> T:
        """
        Run ``unit`` atomically, retrying on concurrency conflicts.

        The caller still owns the outer transaction and decides
        when to commit.
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                with self.db.begin_nested():
                    return unit()
            except (ConcurrencyConflictError, StaleDataError) as e:
                logger.info(
                    "Concurrency conflict, retrying unit",
                    extra={
                        "operation": operation,
                        "attempt": attempt,
                        "reason": str(e),
                    },
                )
                if attempt < self.max_attempts:
                    time.sleep(self.backoff_seconds * attempt)
            except SQLAlchemyError as e:
                logger.error(
                    "Storage failure",
                    extra={"operation": operation, "attempt": attempt},
                    exc_info=True,
                )
                raise PersistenceError(operation) from e

        logger.warning(
            "Unit retries exhausted",
            extra={"operation": operation, "attempts": self.max_attempts},
        )
        raise ConcurrencyConflictError(operation, self.max_attempts)
