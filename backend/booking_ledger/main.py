"""
Booking Ledger API - Main Application Entry Point

Connects Stripe checkout to a Google Sheets booking ledger:
- Checkout session creation carrying the booking as metadata
- Payment confirmation (webhook or success page) that records the booking
- Capacity tracking with compare-and-set on the Events sheet
- Booking details for the confirmation page
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from booking_ledger.api.middleware import RequestLoggingMiddleware
from booking_ledger.api.router import api_router
from booking_ledger.core.config import get_settings
from booking_ledger.core.logging import get_logger, setup_logging
from booking_ledger.core.metrics import metrics_endpoint
from booking_ledger.services.ledger import build_ledger, verify_ledger
from booking_ledger.services.strategy_factory import get_grid_backend

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        row_store=settings.ROW_STORE_BACKEND,
        write_policy=settings.BOOKING_WRITE_POLICY,
    )

    # Header mismatch aborts startup
    if settings.VERIFY_SCHEMA_ON_STARTUP and settings.ROW_STORE_BACKEND == "sheets":
        ledger = build_ledger(get_grid_backend(), settings)
        await verify_ledger(ledger)

    yield

    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Stripe checkout to Google Sheets booking ledger",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Stripe-Signature"],
)

# Custom middleware
app.add_middleware(RequestLoggingMiddleware)

# Routes
app.include_router(api_router)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Missing or malformed request fields are a 400, not FastAPI's default 422."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for the hosting platform."""
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "row_store": settings.ROW_STORE_BACKEND,
    }


@app.get("/metrics", include_in_schema=False)
async def metrics():
    return metrics_endpoint()
