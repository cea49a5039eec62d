import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .database import Base, engine
from .domain.booking.router import router as booking_router
from .domain.console.router import router as console_router
from .domain.episodes.router import router as episodes_router
from .domain.invitations.router import router as invitations_router
from .errors import PodbookError
from .routes.users import router as users_router
from .security_headers import PublicCORSMiddleware, SecurityHeadersMiddleware, is_public_path

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Several workers may race on first start
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    try:
        from .rate_limiter import get_redis_client

        get_redis_client()
        logger.info("Redis connection established")
    except Exception as e:
        logger.warning(
            f"⚠️ Redis connection failed - public endpoints will answer 503 and live updates are off: {e}"
        )

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Podbook API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(PodbookError)
async def podbook_error_handler(request: Request, exc: PodbookError):
    if exc.status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path} - {exc.message}")
    else:
        logger.warning(f"⚠️ {request.method} {request.url.path} - {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Public endpoints answer bad bodies with a single {"error"} message, the same
    shape as their other failures. Host endpoints keep the 422 detail list.
    """
    if not is_public_path(request.url.path):
        return await request_validation_exception_handler(request, exc)

    error = exc.errors()[0]
    if error.get("type") == "missing":
        message = f"{error['loc'][-1]} is required"
    else:
        message = error.get("msg", "Invalid request").removeprefix("Value error, ")
    logger.warning(f"⚠️ Validation error for {request.url.path}: {message}")
    # The invitation trigger reports every failure as 500; the booking POST parses its own body
    return JSONResponse(status_code=500, content={"error": message})


if SECURITY_HEADERS_ENABLED:
    app.add_middleware(
        SecurityHeadersMiddleware, exclude_paths=["/health", "/docs", "/openapi.json"]
    )
    logger.info("Security headers enabled")
else:
    logger.warning("Security headers DISABLED - only use in development!")

# CORS for the authenticated host console
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:5173,http://localhost:3000",
).split(",")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
    allow_headers=["*"],
)

# Added last so it wraps everything and sees guest preflights first
app.add_middleware(PublicCORSMiddleware)

app.include_router(users_router)
app.include_router(episodes_router)
app.include_router(invitations_router)
app.include_router(booking_router)
app.include_router(console_router)


@app.get("/")
def root():
    return {"message": "Podbook API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}


@app.get("/health/redis")
async def redis_health_check():
    """Check Redis connectivity for monitoring"""
    try:
        from .rate_limiter import get_redis_client

        redis_client = get_redis_client()
        start_time = time.time()
        redis_client.ping()
        response_time = (time.time() - start_time) * 1000
        return {"status": "healthy", "redis": {"response_time_ms": round(response_time, 2)}}
    except Exception as e:
        logger.error(f"❌ Redis health check failed: {e}")
        return JSONResponse(status_code=503, content={"status": "unhealthy", "error": str(e)})
