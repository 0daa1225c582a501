"""
Solar Portal Payments — FastAPI Application Entry Point

Aggregates all routers, configures middleware and error envelopes,
and initializes the database on startup.
"""
import time

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from solar_portal.config import get_settings
from solar_portal.database import init_db
from solar_portal.exceptions import PaymentError
from solar_portal.routes import payment_router, admin_router, pricing_router
from solar_portal.routes.payment import invalid_body_response
from solar_portal.utils.logger import logger

settings = get_settings()

# ─── Application Instance ───────────────────────────────────────────
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=(
        "Payment backend for the solar portal: ZarinPal payment request and "
        "callback verification, customer payment history, the admin payment "
        "console, and the public electricity price calculator."
    ),
    docs_url="/docs",
    redoc_url="/redoc",
)

# ─── Startup ─────────────────────────────────────────────────────────
BOOT_TIME = time.time()


@app.on_event("startup")
def on_startup():
    """Initialize database tables and log boot info."""
    init_db()
    logger.info(
        f"{settings.APP_NAME} v{settings.APP_VERSION} | "
        f"gateway: {settings.ZARINPAL_BASE_URL} | "
        f"database: {settings.DATABASE_URL.split('@')[-1]} | "
        f"debug: {settings.DEBUG}"
    )


# ─── Middleware ──────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every API request with timing."""
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 1)

    if request.url.path.startswith("/api"):
        logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({duration}ms)")

    return response


# ─── Error Envelopes ─────────────────────────────────────────────────
@app.exception_handler(PaymentError)
async def payment_error_handler(request: Request, exc: PaymentError):
    """Errors raised from dependencies (e.g. rate limiting) before a route body runs."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message, "error_code": exc.error_code},
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ())[1:]) or "request"
    error = f"{field}: {first.get('msg', 'invalid value')}"
    detail = jsonable_encoder(errors)

    payment_response = await invalid_body_response(request, error, detail)
    if payment_response is not None:
        return payment_response

    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": error,
            "error_code": "validation_error",
            "detail": detail,
        },
    )


# ─── API Routers ─────────────────────────────────────────────────────
app.include_router(payment_router)
app.include_router(admin_router)
app.include_router(pricing_router)


@app.get("/health", tags=["Health"])
def deep_health():
    """Detailed health check including dependency statuses."""
    from solar_portal.database import SessionLocal
    from sqlalchemy import text
    from sqlalchemy.exc import SQLAlchemyError

    db_ok = False
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        db_ok = True
    except SQLAlchemyError as e:
        logger.error(f"Health check database probe failed: {e}")
    finally:
        db.close()

    return {
        "status": "healthy" if db_ok else "degraded",
        "database": "connected" if db_ok else "disconnected",
        "gateway": settings.ZARINPAL_BASE_URL,
        "uptime_seconds": round(time.time() - BOOT_TIME, 1),
        "version": settings.APP_VERSION,
    }
