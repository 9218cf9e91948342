"""
UMC Media Hub - Application Entry Point
=========================================
FastAPI app initialization, middleware, and router registration.
"""

import logging
import time as _time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config import settings
from config.database import Base, engine
from common.exceptions import RentalError

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("umc.app")
request_logger = logging.getLogger("umc.request")


# ==========================================
# Import ALL models so Alembic/Base can see them
# ==========================================
from modules.catalog.models import Category, Asset, Service, ServicePackage  # noqa: F401, E402
from modules.cart.models import CartItem  # noqa: F401, E402
from modules.booking.models import Booking, BookingItem, BookingStatusLog  # noqa: F401, E402
from modules.payment.models import Payment  # noqa: F401, E402
from modules.loan.models import LoanExtension  # noqa: F401, E402
from modules.returns.models import Return, Fine  # noqa: F401, E402
from modules.feedback.models import Feedback  # noqa: F401, E402
from modules.notification.models import Notification  # noqa: F401, E402

# ==========================================
# Import routers
# ==========================================
from modules.cart.routes import router as cart_router  # noqa: E402
from modules.booking.admin_routes import router as booking_admin_router  # noqa: E402
from modules.booking.routes import router as booking_router  # noqa: E402
from modules.payment.routes import router as payment_router  # noqa: E402
from modules.loan.routes import router as loan_router  # noqa: E402
from modules.returns.routes import router as returns_router  # noqa: E402
from modules.feedback.routes import router as feedback_router  # noqa: E402
from modules.notification.routes import router as notification_router  # noqa: E402
from modules.payment.gateways import get_all_gateway_names  # noqa: E402


@asynccontextmanager
async def lifespan(app):
    # Auto-create any missing tables (safe for existing tables)
    Base.metadata.create_all(bind=engine)
    registered = get_all_gateway_names()
    if settings.PAYMENT_GATEWAY not in registered:
        logger.warning(f"Payment gateway '{settings.PAYMENT_GATEWAY}' is not registered (available: {registered})")
    logger.info(f"UMC Media Hub started (gateway: {settings.PAYMENT_GATEWAY})")
    yield


# ==========================================
# Create App
# ==========================================
app = FastAPI(
    title="UMC Media Hub",
    description="Peminjaman alat & layanan media",
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
    lifespan=lifespan,
)


# ==========================================
# Exception handler: business errors that escaped a Result
# ==========================================
async def rental_exception_handler(request: Request, exc: RentalError):
    """TransportError propagates past the Result convention and lands here."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.code} {exc.message}")
    return JSONResponse(
        {"detail": {"message": exc.message, "code": exc.code}},
        status_code=exc.status_code,
    )


app.add_exception_handler(RentalError, rental_exception_handler)


# ==========================================
# Middleware: Request Log
# ==========================================
_SKIP_PATHS = ("/health", "/favicon.ico")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    path = request.url.path
    if any(path.startswith(p) for p in _SKIP_PATHS):
        return await call_next(request)

    start = _time.time()
    response = await call_next(request)
    elapsed_ms = int((_time.time() - start) * 1000)
    request_logger.info(f"{request.method} {path} -> {response.status_code} ({elapsed_ms} ms)")
    return response


# ==========================================
# Register Routers
# ==========================================
app.include_router(cart_router)
app.include_router(booking_admin_router)
app.include_router(booking_router)
app.include_router(payment_router)
app.include_router(loan_router)
app.include_router(returns_router)
app.include_router(feedback_router)
app.include_router(notification_router)


# ==========================================
# Health check
# ==========================================
@app.get("/health")
async def health():
    return {"status": "ok", "version": "1.0.0"}
