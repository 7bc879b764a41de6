"""FastAPI application factory with lifespan management."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hostdiff import __version__
from hostdiff.api.routers import hosts, snapshots
from hostdiff.core.config import get_settings
from hostdiff.core.database import close_engine, get_engine, init_models
from hostdiff.core.errors import DuplicateSnapshot, ErrorKind, HostDiffError
from hostdiff.core.logging import configure_logging, get_logger

logger = get_logger(__name__)

ERROR_STATUS = {
    ErrorKind.invalid_format: 422,
    ErrorKind.duplicate_snapshot: 409,
    ErrorKind.not_found: 404,
    ErrorKind.unavailable: 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    configure_logging(force=True)
    settings = get_settings()
    logger.info("Starting hostdiff", debug=settings.app_debug, version=__version__)

    # Warm up DB connection pool
    engine = get_engine()
    if settings.auto_create_schema:
        await init_models(engine)
        logger.info("Database schema ready")

    yield

    # Cleanup
    await close_engine()
    logger.info("hostdiff stopped")


async def hostdiff_error_handler(request: Request, exc: HostDiffError) -> JSONResponse:
    """Map a structured error kind to its HTTP status."""
    body: dict[str, str] = {"detail": exc.message, "kind": exc.kind.value}
    if isinstance(exc, DuplicateSnapshot):
        body["existing_id"] = str(exc.existing_id)
    logger.warning(
        "Request failed",
        method=request.method,
        path=request.url.path,
        kind=exc.kind.value,
        detail=exc.message,
    )
    return JSONResponse(status_code=ERROR_STATUS[exc.kind], content=body)


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="hostdiff",
        description="Host scan snapshot history and attack-surface diff API",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(HostDiffError, hostdiff_error_handler)

    # API routers
    api_prefix = "/api/v1"
    app.include_router(snapshots.router, prefix=api_prefix)
    app.include_router(hosts.router, prefix=api_prefix)

    @app.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    return app


app = create_app()
