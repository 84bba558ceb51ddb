"""
Deal Commission Service

Main FastAPI application with:
- Commission calculation for the agents of a deal
- Ledger statement generation (transactions and agent wallets)
- Read access to the commission catalog
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from src.api import api_router
from src.config import settings
from src.db import get_db_context
from src.services.catalog import prepare_catalog

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
    - Seeds the commission catalog when its tables are empty, from
      CATALOG_FILE if set, otherwise from the built-in catalog
    - Moves expired built-in schemas to the current year (restart after
      New Year to pick up the new year)

    Shutdown:
    - Cleanup tasks
    """
    logger.info("Starting commission service...")

    if settings.catalog_file or settings.seed_default_catalog:
        async with get_db_context() as db:
            changed = await prepare_catalog(
                db,
                catalog_file=settings.catalog_file,
                seed_default=settings.seed_default_catalog,
                strict=settings.strict_catalog,
            )
            if changed:
                logger.info(f"Catalog prepared: {changed} entries added or refreshed")

    logger.info("Commission service started successfully!")

    yield

    # Shutdown
    logger.info("Shutting down commission service...")


# Create FastAPI application
app = FastAPI(
    title="Deal Commissions",
    description="Agent commission calculation and ledger statement generation",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

# Include routers
app.include_router(api_router)  # /api/* endpoints


# Root redirect
@app.get("/", include_in_schema=False)
async def root():
    """Redirect root to the API docs, or the health check in production."""
    if settings.is_production:
        return RedirectResponse(url="/api/health", status_code=302)
    return RedirectResponse(url="/docs", status_code=302)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=not settings.is_production,
    )
