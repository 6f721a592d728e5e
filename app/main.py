import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi import _rate_limit_exceeded_handler
from slowapi.middleware import SlowAPIMiddleware

from app.core.logging import setup_logging
from app.core.messages import messages
from app.core.rate_limiter import limiter
from app.domain.errors import BookingError, MissingRateError
from app.middleware.request_logger import RequestLoggerMiddleware

from app.api.health import router as health_router
from app.api.rooms import router as rooms_router
from app.api.availability import router as availability_router
from app.api.holds import router as holds_router
from app.api.pricing import router as pricing_router
from app.api.bookings import router as bookings_router
from app.api.admin import router as admin_router


# -------------------------------------------------
# Logging
# -------------------------------------------------

setup_logging()
logger = logging.getLogger(__name__)

logger.info("Starting application")


# -------------------------------------------------
# FastAPI
# -------------------------------------------------

app = FastAPI(
    title="Chata Booking",
    description="Room availability, reservation holds and pricing",
    version="0.1.0",
)

# -------------------------------------------------
# Rate Limiting (slowapi)
# -------------------------------------------------
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(RequestLoggerMiddleware)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    lang = request.query_params.get("lang")
    if isinstance(exc, MissingRateError):
        # Configuration fault: details stay in the log, never in the response
        logger.error(f"Pricing unavailable: {exc.message}")
        content = {"error": exc.message_key}
    else:
        content = {"error": exc.message_key, **exc.details()}
    content["message"] = messages.for_error(exc, lang)
    return JSONResponse(status_code=exc.status_code, content=content)


app.include_router(health_router)
app.include_router(rooms_router)
app.include_router(availability_router)
app.include_router(holds_router)
app.include_router(pricing_router)
app.include_router(bookings_router)
app.include_router(admin_router)


# -------------------------------------------------
# Lifecycle
# -------------------------------------------------


@app.on_event("startup")
async def on_startup():
    logger.info("FastAPI startup")

    # Init DB
    from app.database import init_db

    await init_db()

    # Start scheduler
    from app.services.scheduler_service import scheduler_service

    scheduler_service.start()


@app.on_event("shutdown")
async def on_shutdown():
    logger.info("FastAPI shutdown")

    # Stop scheduler
    from app.services.scheduler_service import scheduler_service

    scheduler_service.shutdown()
