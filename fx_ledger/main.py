"""
FX Ledger: FastAPI application.

This is the entry point for the application.
All routers are registered here.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from fx_ledger.config import get_settings
from fx_ledger.logging_config import setup_logging, get_logger
from fx_ledger.api.health import router as health_router
from fx_ledger.api.accounts import router as accounts_router
from fx_ledger.api.transactions import router as transactions_router

settings = get_settings()
logger = get_logger("main")


def bootstrap_accounts() -> None:
    """Create an account for every configured currency that lacks one."""
    from fx_ledger.models.base import SessionLocal
    from fx_ledger.services.account_store import AccountStore

    currencies = sorted(set(settings.CURRENCIES) | {settings.SETTLEMENT_CURRENCY})
    db = SessionLocal()
    try:
        AccountStore(db).ensure_accounts(currencies)
        db.commit()
    finally:
        db.close()
    logger.info("Accounts ready", extra={"currencies": currencies})


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.LOG_LEVEL)
    bootstrap_accounts()
    yield


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Multi-currency ledger for a currency-exchange desk",
    lifespan=lifespan,
)

# Register routers
app.include_router(health_router)
app.include_router(accounts_router)
app.include_router(transactions_router)
