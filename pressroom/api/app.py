"""FastAPI application factory."""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from ..config import Config
from ..db import close_connection_pool
from ..errors import GenerationError, PressroomError, ServiceAuthError
from ..generation.images import MEDIA_URL_PREFIX
from . import articles, media
from .schemas import ErrorResponse

logger = logging.getLogger(__name__)

# Longest request log line before it is cut
MAX_LOG_LINE = 80

MEDIA_CACHE_SUFFIXES = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".mp3", ".wav")


def error_status(exc: PressroomError) -> int:
    """HTTP status for a domain error."""
    status = getattr(exc, "status_code", None)
    if status:
        return status
    if isinstance(exc, ServiceAuthError):
        return 503
    if isinstance(exc, GenerationError):
        return 502
    return 500


def create_app(config: Optional[Config] = None) -> FastAPI:
    """Build the API with routes, error mapping, request logging and media serving."""
    config = config or Config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Pressroom API starting up")
        yield
        close_connection_pool()
        logger.info("Pressroom API shut down")

    app = FastAPI(title="Pressroom API", version="0.1.0", lifespan=lifespan)
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        path = request.url.path

        if path.startswith(MEDIA_URL_PREFIX + "/") and path.lower().endswith(MEDIA_CACHE_SUFFIXES):
            response.headers["Cache-Control"] = "public, max-age=86400"

        if path.startswith("/api"):
            elapsed_ms = (time.perf_counter() - start) * 1000
            line = f"{request.method} {path} {response.status_code} in {elapsed_ms:.0f}ms"
            if len(line) > MAX_LOG_LINE:
                line = line[: MAX_LOG_LINE - 1] + "…"
            logger.info(line)
        return response

    @app.exception_handler(PressroomError)
    async def pressroom_error_handler(request: Request, exc: PressroomError):
        status = error_status(exc)
        body = ErrorResponse(message=str(exc))
        if isinstance(exc, GenerationError):
            body.stage = exc.stage
            if isinstance(exc, ServiceAuthError):
                logger.error("%s credentials rejected: %s", exc.service, exc.vendor_message)
            else:
                logger.error("Generation failed at %s: %s", exc.stage, exc)
        return JSONResponse(status_code=status, content=body.model_dump(exclude_none=True))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        for error in errors:
            logger.warning("Invalid request to %s: %s: %s", request.url.path, error["loc"], error["msg"])
        first = errors[0] if errors else {"loc": (), "msg": "Invalid request"}
        field = ".".join(str(part) for part in first["loc"] if part != "body")
        message = f"{field}: {first['msg']}" if field else first["msg"]
        return JSONResponse(status_code=400, content=ErrorResponse(message=message).model_dump(exclude_none=True))

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint for monitoring"""
        return {"status": "healthy", "version": app.version}

    app.include_router(articles.router, prefix="/api")
    app.include_router(media.router, prefix="/api")

    app.mount(MEDIA_URL_PREFIX, StaticFiles(directory=str(config.media_root)), name="media")

    return app
