import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import models  # noqa: F401
from .auth import bootstrap_admin
from .config import ALLOWED_ORIGINS, RATE_LIMIT_ENABLED, UPLOAD_BACKEND, UPLOADS_DIR, UPLOADS_URL_PREFIX
from .database import Base, SessionLocal, engine
from .domain.admin.router import router as admin_router
from .domain.bookings.router import router as bookings_router
from .domain.content.router import router as content_router
from .domain.moderation.router import router as moderation_router
from .domain.payments.router import router as payments_router
from .errors import AppError, RateLimitError, SlotConflictError, validation_error_from_pydantic
from .security_headers import SecurityHeadersMiddleware
from .shared.responses import error_body

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
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")
            raise

    db = SessionLocal()
    try:
        bootstrap_admin(db)
    finally:
        db.close()

    if UPLOAD_BACKEND == "local":
        Path(UPLOADS_DIR).mkdir(parents=True, exist_ok=True)

    if RATE_LIMIT_ENABLED:
        from .rate_limiter import get_redis_client

        if get_redis_client() is None:
            logger.warning("Redis connection failed - rate limiting will count per process only")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="SRD Consulting API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    extra = {}
    headers = None
    if isinstance(exc, SlotConflictError):
        extra["suggestions"] = jsonable_encoder(exc.suggestions)
    if isinstance(exc, RateLimitError) and exc.retry_after is not None:
        headers = {"Retry-After": str(exc.retry_after)}

    if exc.status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path} - {type(exc).__name__}: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} - {exc.status_code} {type(exc).__name__}: {exc.message}")

    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, **extra), headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Report request-shape errors as 400, except Authorization header problems which are 401
    """
    for error in exc.errors():
        if error.get("loc") and "authorization" in str(error.get("loc")).lower():
            logger.warning(
                f"Authentication failed for {request.url.path}: Missing or invalid Authorization header"
            )
            return JSONResponse(
                status_code=401,
                content=error_body(
                    "Not authenticated. Please provide a valid Bearer token in the Authorization header."
                ),
            )

    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content=error_body(validation_error_from_pydantic(exc).message))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content=error_body(str(exc.detail)), headers=exc.headers)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"{request.method} {request.url.path} - Unhandled error: {exc}")
    return JSONResponse(status_code=500, content=error_body("Internal server error"))


if SECURITY_HEADERS_ENABLED:
    app.add_middleware(SecurityHeadersMiddleware, exclude_paths=["/health", "/docs", "/openapi.json"])
    logger.info("Security headers enabled")
else:
    logger.warning("Security headers DISABLED - only use in development!")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Routes
app.include_router(bookings_router)
app.include_router(payments_router)
app.include_router(moderation_router)
app.include_router(content_router)
app.include_router(admin_router)

# Local uploads; with the R2 backend files are served from the bucket's public URL
app.mount(UPLOADS_URL_PREFIX, StaticFiles(directory=UPLOADS_DIR, check_dir=False), name="uploads")


@app.get("/")
def root():
    return {"success": True, "data": None, "message": "SRD Consulting API is running"}


@app.get("/health")
def health():
    return {"success": True, "data": {"status": "healthy"}, "message": None}
