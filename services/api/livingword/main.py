"""FastAPI application entry point.

Living Word API - daily verses with timezone-aware push delivery.
"""

from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from livingword.routes import api_router
from livingword.schemas import ErrorDetail, ErrorResponse
from livingword.services.generator import close_content_generator
from livingword.services.push import ensure_firebase_initialized
from livingword.settings import get_settings
from livingword.stores.postgres import init_db, close_db, ping_db
from livingword.stores.redis import init_redis, close_redis

logger = logging.getLogger("uvicorn.error")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events.
    """
    # Initialize database (skip in tests if no DB available)
    try:
        await init_db()
        await ping_db()
        logger.info("Postgres connected")
    except Exception:
        logger.exception("Postgres init failed")

    # Redis only backs generation locks; the API works without it
    try:
        await init_redis()
    except Exception:
        logger.exception("Redis init failed")

    # Push delivery fails per batch until Firebase is configured
    try:
        ensure_firebase_initialized()
        logger.info("Firebase initialized")
    except Exception:
        logger.exception("Firebase init failed")

    yield

    # Shutdown
    await close_content_generator()
    await close_redis()
    await close_db()


def _error_response(status_code: int, code: str, message: str, detail: object = None) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail))
    return JSONResponse(status_code=status_code, content=body.model_dump())


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Daily verse of the day with timezone-aware push notifications",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Missing or invalid client fields are a 400, not FastAPI's default 422."""
        return _error_response(
            400,
            "INVALID_REQUEST",
            "Missing or invalid data",
            [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors()],
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        code = "INTERNAL_ERROR" if exc.status_code >= 500 else "HTTP_ERROR"
        message = str(exc.detail) if (exc.status_code < 500 or settings.debug) else "Internal server error"
        return _error_response(exc.status_code, code, message)

    # Exception handler for structured error format
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler returning structured error format."""
        logger.exception("Unhandled error")
        return _error_response(
            500,
            "INTERNAL_ERROR",
            str(exc) if settings.debug else "Internal server error",
        )

    # Health check endpoint
    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, bool]:
        """Health check endpoint."""
        return {"ok": True}

    app.include_router(api_router)

    return app


# Application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "livingword.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
