"""
VidTube Backend — FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires middleware, exception handlers and routers.
Who:   uvicorn (uvicorn vidtube.main:app) and the test suite.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌────────────┐ ┌──────┐ ┌──────┐      │
    │  │  Req ID  │→│ Access log │→│ GZip │→│ CORS │      │
    │  └──────────┘ └────────────┘ └──────┘ └──────┘      │
    │                                                     │
    │  Routers (/api/v1):                                 │
    │  ┌────────┐ ┌────────┐ ┌────────┐ ┌───────┐ ┌─────┐ │
    │  │ likes  │ │ tweets │ │ videos │ │health │ │media│ │
    │  └────────┘ └────────┘ └────────┘ └───────┘ └─────┘ │
    │                                                     │
    │  Exception Handlers → error envelope:               │
    │  VidTubeError → its status │ request validation →   │
    │  400 │ anything else → 500                          │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, configuration check, storage directories
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncGenerator, List, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from vidtube import __version__
from vidtube.config import settings
from vidtube.database import dispose_engine
from vidtube.exceptions import MediaUploadError, VidTubeError
from vidtube.middleware.logging import RequestLoggingMiddleware
from vidtube.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware, request_id_var
from vidtube.routes import health, likes, media, tweets, videos
from vidtube.schemas import ErrorResponse

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "An internal error occurred. Please try again later."


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once at startup.

    Format: 2024-01-15T12:00:00 [INFO] vidtube.services.video_service: ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # uvicorn's access log duplicates RequestLoggingMiddleware
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifecycle
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("VidTube Backend %s starting up...", __version__)

    # Log and keep serving: local development runs without Cloudinary keys
    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))

    storage = Path(settings.storage_root)
    storage.mkdir(parents=True, exist_ok=True)
    logger.info("Storage directory: %s (media backend: %s)", storage.resolve(), settings.media_backend)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("VidTube Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    # request.state outlives the ContextVar for handlers run outside the
    # middleware (the catch-all runs in ServerErrorMiddleware)
    return getattr(request.state, "request_id", None) or request_id_var.get("")


def _error_response(
    request: Request,
    status_code: int,
    message: str,
    errors: Optional[List[Any]] = None,
) -> JSONResponse:
    rid = _request_id(request)
    body = ErrorResponse(
        status_code=status_code,
        message=message,
        errors=errors or [],
        request_id=rid or None,
    )
    headers = {REQUEST_ID_HEADER: rid} if rid else None
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(body.model_dump(by_alias=True)),
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to the error envelope.

    Handler hierarchy:
        VidTubeError subclasses → exc.status_code (400/401/403/404/500)
        RequestValidationError  → 400 with FastAPI's field errors
        Exception (fallback)    → 500

    5xx envelopes never carry internal details; exc.context and stack traces
    go to the server log only.
    """

    @app.exception_handler(VidTubeError)
    async def handle_vidtube_error(request: Request, exc: VidTubeError):
        rid = _request_id(request)
        if exc.status_code >= 500:
            logger.error(
                "[%s] %s: %s | Context: %s",
                rid,
                type(exc).__name__,
                exc.message,
                exc.context,
            )
            # Upload failures name the failed asset; other 5xx stay generic
            message = exc.message if isinstance(exc, MediaUploadError) else GENERIC_SERVER_ERROR
            return _error_response(request, exc.status_code, message)

        logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)
        return _error_response(request, exc.status_code, exc.message, exc.errors)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(part) for part in error.get("loc", ())),
                "message": error.get("msg", ""),
            }
            for error in exc.errors()
        ]
        logger.warning("[%s] Request validation failed: %s", _request_id(request), errors)
        return _error_response(request, 400, "Invalid request", errors)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            _request_id(request),
            str(exc),
            exc_info=True,
        )
        return _error_response(request, 500, GENERIC_SERVER_ERROR)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="VidTube API",
        description="Videos, tweets and likes for the VidTube platform.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Starlette runs middleware in reverse order of registration:
    # the last one added is the outermost.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(likes.router)
    app.include_router(tweets.router)
    app.include_router(videos.router)
    app.include_router(health.router)
    app.include_router(media.router)

    return app


app = create_app()
