"""
main.py
-------
FastAPI application factory and entry point.

Application lifecycle:
  1. App is created by create_application(), which also builds the
     Database and IdentityProvider handles and parks them on app.state.
  2. lifespan context manager runs on startup / shutdown.
  3. Routers are registered under settings.API_PREFIX.
  4. Global exception handlers give every error the same JSON shape:
     {"message": ..., "error"?: ...}.
  5. Each request gets a request id (X-Request-ID, echoed back) that is
     bound into every log event emitted while it runs.

Run with:
    uvicorn main:app --reload              # development
    uvicorn main:app --workers 4           # production (no --reload)
"""

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from promptdepot.api.routes import auth, directories, ping, projects
from promptdepot.core.config import Settings, get_settings
from promptdepot.core.exceptions import PromptDepotError
from promptdepot.core.logging import (
    REQUEST_ID_HEADER,
    bind_request_context,
    clear_request_context,
    configure_logging,
    get_logger,
)
from promptdepot.core.security import IdentityProvider
from promptdepot.db.session import Database

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Startup / shutdown lifecycle hook.

    Shutdown:
      - Dispose the async engine (graceful connection pool drain)
    """
    settings: Settings = app.state.settings
    logger.info(
        "Starting up",
        app=settings.APP_NAME,
        env=settings.APP_ENV,
        debug=settings.DEBUG,
    )
    yield
    logger.info("Shutting down, disposing DB engine")
    await app.state.db.dispose()


def create_application(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.APP_NAME,
        description=(
            "Multi-tenant prompt store: projects with per-user permissions, "
            "a directory / prompt hierarchy and identity-provider auth."
        ),
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.db = Database(settings.DATABASE_URL, echo=settings.DEBUG)
    app.state.identity = IdentityProvider(settings)

    # ── CORS ─────────────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Request logging ───────────────────────────────────────────────────────
    @app.middleware("http")
    async def request_logging(request: Request, call_next):
        request_id = bind_request_context(
            request.method, request.url.path, request.headers.get(REQUEST_ID_HEADER)
        )
        start = time.monotonic()
        try:
            response = await call_next(request)
            latency_ms = round((time.monotonic() - start) * 1000, 1)
            logger.info("Request completed", status_code=response.status_code, latency_ms=latency_ms)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            clear_request_context()

    # ── Routers ───────────────────────────────────────────────────────────────
    app.include_router(ping.router, prefix=settings.API_PREFIX)
    app.include_router(auth.router, prefix=settings.API_PREFIX)
    app.include_router(projects.router, prefix=settings.API_PREFIX)
    app.include_router(directories.router, prefix=settings.API_PREFIX)

    # ── Global Exception Handlers ─────────────────────────────────────────────

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        content = exc.detail if isinstance(exc.detail, dict) else {"message": exc.detail}
        return JSONResponse(
            status_code=exc.status_code,
            content=content,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(PromptDepotError)
    async def domain_exception_handler(
        request: Request, exc: PromptDepotError
    ) -> JSONResponse:
        # Raised outside a route's try block, e.g. by the auth dependencies.
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "message": "Validation failed",
                "error": jsonable_encoder(exc.errors()),
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.error(
            "Unhandled exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Internal server error"},
        )

    # ── Health Check ──────────────────────────────────────────────────────────

    @app.get("/health", tags=["Health"], summary="Service health check")
    async def health() -> dict:
        return {"status": "ok", "app": settings.APP_NAME, "env": settings.APP_ENV}

    return app


app = create_application()
