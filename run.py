"""
FX Ledger entry point.

Starts the API server with uvicorn using HOST/PORT from settings.
"""

import uvicorn

from fx_ledger.config import get_settings


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "fx_ledger.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
