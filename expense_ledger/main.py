"""
Expense Ledger — FastAPI Application.

This is the entry point for the application.
All routers are registered here.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy.exc import SQLAlchemyError

from expense_ledger.config import get_settings
from expense_ledger.errors import ConsistencyError
from expense_ledger.logging_config import setup_logging
from expense_ledger.models.base import SessionLocal
from expense_ledger.services.ledger_service import LedgerService
from expense_ledger.api.health import router as health_router
from expense_ledger.api.accounts import router as accounts_router
from expense_ledger.api.entries import router as entries_router

settings = get_settings()
logger = logging.getLogger(__name__)


def recover_on_startup() -> None:
    """Resolve entries an earlier process left half-written."""
    db = SessionLocal()
    try:
        report = LedgerService(db).recover_pending()
        if report.unresolved:
            logger.error(
                "%d pending entries need manual reconciliation: %s",
                len(report.unresolved), ", ".join(report.unresolved),
            )
    except (SQLAlchemyError, ConsistencyError):
        logger.exception("Pending-entry recovery failed; continuing startup")
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.LOG_LEVEL)
    logger.info(
        "%s %s starting (%s)",
        settings.APP_NAME, settings.APP_VERSION, settings.ENVIRONMENT,
    )
    if settings.RECOVER_PENDING_ON_STARTUP:
        recover_on_startup()
    yield
    logger.info("%s shutting down", settings.APP_NAME)


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Per-account balance ledger for personal expense tracking",
    lifespan=lifespan,
)

# Register routers
app.include_router(health_router)
app.include_router(accounts_router)
app.include_router(entries_router)
