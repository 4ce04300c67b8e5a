import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from .config import ALLOWED_ORIGINS, PAYMENT_WEBHOOK_SECRET, SECURITY_HEADERS_ENABLED
from .database import create_db_engine, create_session_factory, init_db
from .domain.bookings import admin_router as bookings_admin_router
from .domain.bookings import router as bookings_router
from .domain.catalog import router as catalog_router
from .domain.payments import router as payments_router
from .domain.payments.gateway import PaymentGateway, StripeGateway
from .domain.scheduling import admin_router as calendar_admin_router
from .domain.scheduling import router as scheduling_router
from .security_headers import SecurityHeadersMiddleware
from .shared.exceptions import BookingError, ValidationError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


def _field_name(loc) -> str:
    """('body', 'email') -> 'email'"""
    parts = [str(p) for p in loc if p not in ("body", "query", "path")]
    return ".".join(parts) or "request"


def create_app(
    engine: Optional[Engine] = None,
    session_factory: Optional[sessionmaker] = None,
    payment_gateway: Optional[PaymentGateway] = None,
    webhook_secret: Optional[str] = PAYMENT_WEBHOOK_SECRET,
) -> FastAPI:
    """
    Build the API application.

    The engine, session factory and payment gateway are explicit so tests
    (and other deployments) can hand in their own.
    """
    engine = engine or create_db_engine()
    session_factory = session_factory or create_session_factory(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Application starting up...")
        init_db(engine)
        logger.info("Database tables created successfully")
        yield
        logger.info("Application shutting down...")

    app = FastAPI(title="AutoBook API", version="1.0.0", lifespan=lifespan)
    app.state.session_factory = session_factory
    app.state.payment_gateway = payment_gateway or StripeGateway()
    app.state.webhook_secret = webhook_secret

    if not webhook_secret:
        logger.warning("⚠️ PAYMENT_WEBHOOK_SECRET not set - payment events will be rejected")

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        logger.warning(f"Validation error for {request.url.path}: {exc.errors}")
        return JSONResponse(status_code=exc.status_code, content={"errors": exc.errors})

    @app.exception_handler(BookingError)
    async def booking_error_handler(request: Request, exc: BookingError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} - {exc.detail}")
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        """Report malformed input as 400 with one entry per field"""
        errors = [
            {"field": _field_name(error.get("loc", ())), "message": error.get("msg", "Invalid value")}
            for error in exc.errors()
        ]
        logger.warning(f"Validation error for {request.url.path}: {errors}")
        return JSONResponse(status_code=400, content={"errors": errors})

    if SECURITY_HEADERS_ENABLED:
        app.add_middleware(
            SecurityHeadersMiddleware, exclude_paths=["/health", "/docs", "/openapi.json"]
        )
        logger.info("Security headers enabled")
    else:
        logger.warning("Security headers DISABLED - only use in development!")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
        allow_headers=["*"],
    )

    # Availability and reservation routes come before /api/bookings/{booking_id}
    app.include_router(scheduling_router)
    app.include_router(bookings_router)
    app.include_router(catalog_router)
    app.include_router(payments_router)
    app.include_router(bookings_admin_router)
    app.include_router(calendar_admin_router)

    @app.get("/")
    def root():
        return {"message": "AutoBook API is running"}

    @app.get("/health")
    def health():
        return {"status": "healthy"}

    return app


app = create_app()
