"""
Design Gallery - Application Entry Point
=========================================
FastAPI app initialization, middleware, error handlers, and router registration.
"""

import logging
import os
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import settings
from config.database import get_db, Base, engine
from common.exceptions import AppError, RateLimitedError
from common.responses import success_response, error_response
from common.security import build_rate_limiters, rate_limit

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("gallery.app")
request_logger = logging.getLogger("gallery.requests")
error_logger = logging.getLogger("gallery.errors")


# ==========================================
# Import ALL models so Alembic/Base can see them
# ==========================================
from modules.user.models import User  # noqa: F401,E402
from modules.catalog.models import Design, DesignImage  # noqa: F401,E402
from modules.favorite.models import UserFavorite  # noqa: F401,E402
from modules.cart.models import Cart, CartItem  # noqa: F401,E402
from modules.admin.models import AppSetting  # noqa: F401,E402

# ==========================================
# Import routers
# ==========================================
from modules.auth.routes import router as auth_router  # noqa: E402
from modules.favorite.routes import router as favorite_router  # noqa: E402
from modules.catalog.routes import router as catalog_router  # noqa: E402
from modules.cart.routes import router as cart_router  # noqa: E402
from modules.upload.routes import router as upload_router  # noqa: E402
from modules.admin.routes import router as admin_router  # noqa: E402


@asynccontextmanager
async def lifespan(app):
    # Auto-create any missing tables (safe for existing tables)
    Base.metadata.create_all(bind=engine)
    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    logger.info("%s %s started (%s)", settings.APP_NAME, settings.APP_VERSION, settings.ENVIRONMENT)
    yield
    logger.info("%s stopped", settings.APP_NAME)


# ==========================================
# Create App
# ==========================================
app = FastAPI(
    title=settings.APP_NAME,
    description="Design gallery catalog with favorites, cart and WhatsApp sharing",
    version=settings.APP_VERSION,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
    lifespan=lifespan,
)

app.state.rate_limiters = build_rate_limiters()


# ==========================================
# Exception Handlers: everything becomes the JSON envelope
# ==========================================
@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    headers = None
    if isinstance(exc, RateLimitedError):
        headers = {
            "Retry-After": str(exc.retry_after),
            "X-RateLimit-Limit": str(exc.limit),
            "X-RateLimit-Remaining": "0",
        }
    extra = {"detail": exc.detail} if exc.detail else {}
    if isinstance(exc, RateLimitedError):
        extra["retry_after"] = exc.retry_after
    return error_response(exc.status_code, exc.message, exc.code, headers=headers, **extra)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return error_response(400, "Invalid request data", "VALIDATION_ERROR", detail=errors)


_HTTP_CODES = {
    400: "BAD_REQUEST",
    401: "AUTHENTICATION_ERROR",
    403: "AUTHORIZATION_ERROR",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    413: "PAYLOAD_TOO_LARGE",
    429: "RATE_LIMIT_EXCEEDED",
}


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == 404 and message == "Not Found":
        message = "Route not found"
    return error_response(
        exc.status_code, message, _HTTP_CODES.get(exc.status_code, "HTTP_ERROR"),
        headers=getattr(exc, "headers", None),
    )


# ==========================================
# Middleware: Unexpected Error Guard (innermost)
# ==========================================
@app.middleware("http")
async def error_guard(request: Request, call_next):
    """Anything not mapped above is logged in full and returned as a generic 500."""
    try:
        return await call_next(request)
    except Exception:
        request_id = getattr(request.state, "request_id", None)
        error_logger.exception("Unhandled error on %s %s (request_id=%s)", request.method, request.url.path, request_id)
        return error_response(500, "Internal server error", "INTERNAL_ERROR", request_id=request_id)


# ==========================================
# Middleware: Request Log + Correlation ID
# ==========================================
_SKIP_LOG_PATHS = ("/health", "/favicon.ico", settings.MEDIA_URL_PATH + "/")


@app.middleware("http")
async def request_log(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    request.state.request_id = request_id
    start = time.perf_counter()

    response = await call_next(request)

    elapsed_ms = int((time.perf_counter() - start) * 1000)
    response.headers["X-Request-ID"] = request_id
    if not request.url.path.startswith(_SKIP_LOG_PATHS):
        request_logger.info(
            "%s %s -> %d (%dms) id=%s",
            request.method, request.url.path, response.status_code, elapsed_ms, request_id,
        )
    return response


# ==========================================
# Middleware: CORS (outermost)
# ==========================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
    expose_headers=["X-Request-ID", "Retry-After"],
    max_age=settings.CORS_MAX_AGE,
)


@app.middleware("http")
async def preflight_no_content(request: Request, call_next):
    """Every OPTIONS request gets a 204 carrying the CORS headers CORSMiddleware granted."""
    response = await call_next(request)
    if request.method != "OPTIONS":
        return response
    headers = {
        k: v for k, v in response.headers.items()
        if k.lower().startswith("access-control-") or k.lower() == "vary"
    }
    return Response(status_code=204, headers=headers)


# ==========================================
# Register Routers
# ==========================================
_api = [Depends(rate_limit("api"))]

app.include_router(auth_router, prefix=settings.API_PREFIX)
# /designs/user/favorites must be matched before /designs/{design_id}
app.include_router(favorite_router, prefix=settings.API_PREFIX, dependencies=_api)
app.include_router(catalog_router, prefix=settings.API_PREFIX, dependencies=_api)
app.include_router(cart_router, prefix=settings.API_PREFIX, dependencies=_api)
app.include_router(upload_router, prefix=settings.API_PREFIX, dependencies=_api)
app.include_router(admin_router, prefix=settings.API_PREFIX, dependencies=_api)

app.mount(settings.MEDIA_URL_PATH, StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False), name="media")


# ==========================================
# Service Endpoints
# ==========================================
@app.get("/")
async def root():
    return success_response(
        {"name": settings.APP_NAME, "version": settings.APP_VERSION, "docs": "/docs" if settings.DEBUG else None},
        f"{settings.APP_NAME} is running",
    )


@app.get("/health")
def health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Health check failed: %s", e)
        return error_response(503, "Database is not reachable", "SERVICE_UNAVAILABLE")
    return success_response(
        {"status": "healthy", "version": settings.APP_VERSION, "environment": settings.ENVIRONMENT},
        "Service is healthy",
    )


@app.get(f"{settings.API_PREFIX}/info")
async def api_info():
    p = settings.API_PREFIX
    return success_response({
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "endpoints": {
            "auth": f"{p}/auth",
            "designs": f"{p}/designs",
            "favorites": f"{p}/designs/user/favorites",
            "cart": f"{p}/cart",
            "upload": f"{p}/upload",
            "admin": f"{p}/admin",
            "media": settings.MEDIA_URL_PATH,
        },
    }, "API information")
