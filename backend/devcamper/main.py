"""
DevCamper Backend — FastAPI Application Factory
=================================================

What:  Builds the FastAPI app: logging, lifespan, middleware, error handlers
       and routers.
Who:   uvicorn (`uvicorn devcamper.main:app`) and the test suite.

Error envelope (every non-2xx response):
    {"success": false, "error": "<code>", "message": "...",
     "details": {...}?, "request_id": "..."}

Status mapping:
    ValidationError, IntegrityError,
    RequestValidationError              → 400
    NotAuthorizedError                  → 401
    ForbiddenError                      → 403
    NotFoundError                       → 404
    GeocodingError,
    CircuitBreakerOpenError             → 503 (+ Retry-After)
    FileStorageError,
    anything else                       → 500 (details logged, not returned)
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from devcamper import __version__
from devcamper.config import settings
from devcamper.database import dispose_engine
from devcamper.exceptions import (
    CircuitBreakerOpenError,
    DevCamperError,
    FileStorageError,
    ForbiddenError,
    GeocodingError,
    NotAuthorizedError,
    NotFoundError,
    ValidationError,
)
from devcamper.middleware.logging import AccessLogMiddleware
from devcamper.middleware.request_id import RequestIDLogFilter, RequestIDMiddleware, request_id_var
from devcamper.routes import bootcamps, courses, files, health

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """Root logger to stdout at LOG_LEVEL, with the request ID on every line."""
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIDLogFilter())

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s [%(request_id)s]: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[handler],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("DevCamper API %s starting up", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving so /health can report; the problem is in the log
        logger.error("Configuration error: %s", e)

    uploads = Path(settings.file_upload_path)
    uploads.mkdir(parents=True, exist_ok=True)
    logger.info("Upload directory: %s", uploads.resolve())
    logger.info(
        "Serving %s on http://%s:%d",
        settings.api_prefix or "/", settings.backend_host, settings.backend_port,
    )

    yield

    logger.info("DevCamper API shutting down")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error(
    status_code: int,
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    content: Dict[str, Any] = {
        "success": False,
        "error": error,
        "message": message,
        "request_id": request_id_var.get(""),
    }
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """Map each exception type to its status code and the error envelope."""

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("Validation error: %s", exc.message)
        return _error(400, exc.error_code, exc.message, exc.context)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = jsonable_encoder(exc.errors())
        first = errors[0] if errors else {}
        where = ".".join(str(p) for p in first.get("loc", []) if p != "body")
        message = f"{where}: {first.get('msg')}" if where else str(first.get("msg", "Invalid request"))
        logger.warning("Request validation failed: %s", message)
        return _error(400, "validation_error", message, {"errors": errors})

    @app.exception_handler(IntegrityError)
    async def handle_integrity_error(request: Request, exc: IntegrityError):
        logger.warning("Integrity error: %s", exc.orig)
        return _error(400, "validation_error", "Duplicate field value entered")

    @app.exception_handler(NotAuthorizedError)
    async def handle_not_authorized(request: Request, exc: NotAuthorizedError):
        logger.info("Not authorized: %s", exc.message)
        return _error(401, exc.error_code, exc.message)

    @app.exception_handler(ForbiddenError)
    async def handle_forbidden(request: Request, exc: ForbiddenError):
        return _error(403, exc.error_code, exc.message, {"role": exc.role})

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error(404, exc.error_code, exc.message)

    @app.exception_handler(CircuitBreakerOpenError)
    async def handle_circuit_breaker(request: Request, exc: CircuitBreakerOpenError):
        logger.warning("Geocoder circuit open: %s", exc.message)
        return _error(
            503,
            exc.error_code,
            exc.message,
            {"recovery_time": exc.recovery_time},
            headers={"Retry-After": str(exc.recovery_time)},
        )

    @app.exception_handler(GeocodingError)
    async def handle_geocoding_error(request: Request, exc: GeocodingError):
        logger.error("Geocoding error: %s | Context: %s", exc.message, exc.context)
        headers = {"Retry-After": str(exc.retry_after)} if exc.retry_after else None
        return _error(503, exc.error_code, exc.message, headers=headers)

    @app.exception_handler(FileStorageError)
    async def handle_file_storage_error(request: Request, exc: FileStorageError):
        logger.error("File storage error: %s | Context: %s", exc.message, exc.context)
        return _error(500, exc.error_code, exc.message)

    @app.exception_handler(DevCamperError)
    async def handle_app_error(request: Request, exc: DevCamperError):
        logger.error("%s: %s | Context: %s", type(exc).__name__, exc.message, exc.context)
        return _error(exc.status_code, exc.error_code, exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("Unexpected error: %s", exc, exc_info=True)
        return _error(500, "server_error", "Server Error")


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="DevCamper API",
        description="Bootcamp directory: bootcamps, courses, radius search and photo uploads.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Last added runs first: RequestID → AccessLog → GZip → CORS → routes
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Total-Count", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(bootcamps.router)
    app.include_router(courses.router)
    app.include_router(files.router)
    app.include_router(health.router)

    return app


app = create_app()
