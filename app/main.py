"""Main FastAPI application."""
from time import perf_counter
import logging
import os
import uuid

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded

from app.core.config import settings
from app.core.limiter import limiter
from app.core.ops_metrics import observe_public_latency
from app.api import auth, admin_surveys, admin_users, admin_stats, public

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Survey Flow API",
    description="Survey authoring and anonymous response collection",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

_RESERVED_DETAIL_KEYS = {"code", "message", "retriable"}


def _error_payload(
    request: Request,
    *,
    code: str,
    message: str,
    retriable: bool,
    **extra,
) -> dict:
    return {
        "code": code,
        "message": message,
        "retriable": retriable,
        "request_id": getattr(request.state, "request_id", "unknown"),
        **extra,
    }


@app.middleware("http")
async def request_context_and_metrics(request: Request, call_next):
    request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
    request.state.request_id = request_id
    start = perf_counter()

    response = await call_next(request)

    elapsed_ms = (perf_counter() - start) * 1000
    response.headers["X-Request-Id"] = request_id

    if request.url.path.startswith("/public"):
        observe_public_latency(request.url.path, elapsed_ms)

    return response


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    detail = exc.detail
    extra = {}
    if isinstance(detail, dict):
        code = str(detail.get("code") or f"http_{exc.status_code}")
        message = str(detail.get("message") or "Request failed")
        retriable = bool(
            detail.get("retriable")
            if detail.get("retriable") is not None
            else exc.status_code in {408, 409, 425, 429} or exc.status_code >= 500
        )
        extra = {k: v for k, v in detail.items() if k not in _RESERVED_DETAIL_KEYS}
    else:
        code = f"http_{exc.status_code}"
        message = str(detail)
        retriable = exc.status_code in {408, 409, 425, 429} or exc.status_code >= 500

    headers = dict(exc.headers or {})
    headers["X-Request-Id"] = getattr(request.state, "request_id", "unknown")
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_payload(
            request,
            code=code,
            message=message,
            retriable=retriable,
            **extra,
        ),
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_payload(
            request,
            code="validation_error",
            message="Request validation failed",
            retriable=False,
            errors=[
                {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
                for err in exc.errors()
            ],
        ),
        headers={"X-Request-Id": getattr(request.state, "request_id", "unknown")},
    )


@app.exception_handler(RateLimitExceeded)
async def rate_limit_exception_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=_error_payload(
            request,
            code="rate_limited",
            message="Too many requests",
            retriable=True,
        ),
        headers={"X-Request-Id": getattr(request.state, "request_id", "unknown")},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_payload(
            request,
            code="internal_error",
            message="Unexpected server error",
            retriable=True,
        ),
        headers={"X-Request-Id": getattr(request.state, "request_id", "unknown")},
    )

# Rate limiter
app.state.limiter = limiter

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept", "Origin", "X-Requested-With", "X-Request-Id"],
)

# Include routers
app.include_router(auth.router)
app.include_router(admin_surveys.router)
app.include_router(admin_users.router)
app.include_router(admin_stats.router)
app.include_router(public.router)      # Anonymous fill-in

# Locally stored attachments (when Cloudinary is not configured)
os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")


@app.get("/")
def root():
    """Health check endpoint."""
    return {
        "message": "Survey Flow API",
        "status": "running",
        "environment": settings.ENVIRONMENT
    }


@app.get("/health")
def health():
    """Health check endpoint with real DB connectivity test."""
    from app.core.database import SessionLocal
    from sqlalchemy import text

    result = {"status": "healthy", "database": "disconnected"}
    http_status = 200

    try:
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
            result["database"] = "connected"
        finally:
            db.close()
    except Exception as exc:
        result["status"] = "degraded"
        result["database"] = f"error: {str(exc)[:120]}"
        http_status = 503

    return JSONResponse(content=result, status_code=http_status)
