# isp_billing/main.py - FastAPI application: routers, error mapping and request logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import traceback
import time

from isp_billing.core.config import settings
from isp_billing.core.db import db_manager, get_engine, health_check as db_health_check
from isp_billing.core.exceptions import (
    BillingError, InvalidInput, NotFound, UnbalancedEntry, ChartNotSeeded, PersistenceError
)
from isp_billing.core.logging_config import setup_logging
from isp_billing.models import Base
from isp_billing.api.routers import accounts, billing, expenses, invoices, journal_entries, payments, reports
from isp_billing.api.routers.ledger import customer_ledger_router, opening_balances_router
from isp_billing.api.routers.vendors import vendor_bills_router, vendors_router

setup_logging()
logger = logging.getLogger(__name__)

ERROR_STATUS = {
    InvalidInput: 400,
    UnbalancedEntry: 400,
    NotFound: 404,
    ChartNotSeeded: 409,
    PersistenceError: 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info(f"Starting {settings.API_TITLE}...")
    logger.info(f"Environment: {settings.ENV}")
    logger.info(f"Database URL: {settings.DATABASE_URL.split('@')[1] if '@' in settings.DATABASE_URL else 'local'}")

    engine = get_engine()

    # Migrations own the schema outside development
    if settings.is_development:
        logger.info("Creating database tables...")
        try:
            Base.metadata.create_all(bind=engine)
            logger.info("Database tables created successfully")
        except Exception as e:
            logger.error(f"Error creating tables: {e}")

    yield

    logger.info(f"Shutting down {settings.API_TITLE}...")
    db_manager.close()


app = FastAPI(
    title=settings.API_TITLE,
    description="Billing and double-entry accounting core for an internet service provider",
    version=settings.API_VERSION,
    docs_url="/docs" if settings.is_development and settings.DEV_SHOW_DOCS else None,
    redoc_url="/redoc" if settings.is_development and settings.DEV_SHOW_DOCS else None,
    lifespan=lifespan
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every request with its status and duration"""
    start_time = time.time()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"Error processing {request.method} {request.url.path}: {e}")
        raise
    process_time = time.time() - start_time
    logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({process_time:.3f}s)")
    return response


app.add_middleware(CORSMiddleware, **settings.get_cors_config())


@app.exception_handler(BillingError)
async def billing_error_handler(request: Request, exc: BillingError):
    """Map typed domain errors to HTTP status codes"""
    status_code = next(
        (code for error_type, code in ERROR_STATUS.items() if isinstance(exc, error_type)), 400
    )
    log = logger.error if status_code >= 500 else logger.warning
    log(f"{request.method} {request.url.path}: {exc.code} {exc.message}")
    return JSONResponse(status_code=status_code, content={"detail": exc.message, **exc.to_dict()})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle uncaught exceptions"""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}")
    logger.error(traceback.format_exc())

    if settings.is_development:
        return JSONResponse(
            status_code=500,
            content={"detail": str(exc), "traceback": traceback.format_exc()}
        )
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.get("/health")
def health_check():
    database = db_health_check()
    return {
        "status": "healthy" if database["status"] == "healthy" else "degraded",
        "environment": settings.ENV,
        "version": settings.API_VERSION,
        "database": database,
    }


logger.info("Registering API routers...")
app.include_router(billing.router, prefix="/api/billing", tags=["Billing"])
app.include_router(invoices.router, prefix="/api/invoices", tags=["Invoices"])
app.include_router(payments.router, prefix="/api/payments", tags=["Payments"])
app.include_router(accounts.router, prefix="/api/accounts", tags=["Chart of Accounts"])
app.include_router(journal_entries.router, prefix="/api/journal-entries", tags=["Journal"])
app.include_router(expenses.router, prefix="/api/expenses", tags=["Expenses"])
app.include_router(opening_balances_router, prefix="/api/opening-balances", tags=["Ledger"])
app.include_router(customer_ledger_router, prefix="/api/customer-ledger", tags=["Ledger"])
app.include_router(reports.router, prefix="/api/reports", tags=["Reports"])
app.include_router(vendors_router, prefix="/api/vendors", tags=["Vendors"])
app.include_router(vendor_bills_router, prefix="/api/vendor-bills", tags=["Vendors"])
logger.info("All routers registered successfully")


@app.get("/")
def root():
    return {
        "message": settings.API_TITLE,
        "version": settings.API_VERSION,
        "docs_url": "/docs" if settings.is_development and settings.DEV_SHOW_DOCS else "Documentation disabled",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("isp_billing.main:app", host=settings.API_HOST, port=settings.API_PORT, reload=settings.DEBUG)
