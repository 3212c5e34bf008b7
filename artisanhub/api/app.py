"""
FastAPI application factory.

Creates the app with lifespan-managed singletons (marketplace repository
and AI advisor) so connections are opened once at startup and shared
across requests.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware

from artisanhub.api.metrics import record_error
from artisanhub.api.middleware import LatencyMiddleware
from artisanhub.api.routes import router
from artisanhub.config import CORS_ORIGINS, STORE_BACKEND, get_logger
from artisanhub.exceptions import ArtisanHubError

logger = get_logger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI):
    """Initialize shared resources at startup, release at shutdown."""
    logger.info("Starting ArtisanHub API...")

    from artisanhub.adapters.repository import MongoRepository, get_repository

    try:
        app.state.repository = get_repository()
    except Exception:
        logger.exception("Failed to initialize %s store -- cannot start", STORE_BACKEND)
        raise

    if isinstance(app.state.repository, MongoRepository):
        if app.state.repository.ping():
            app.state.repository.ensure_indexes()
        else:
            logger.warning("MongoDB unreachable at startup -- will retry on requests")

    # Advisor -- AI suggestions are optional, never a startup requirement
    from artisanhub.services.advisor import build_advisor

    app.state.advisor = build_advisor()

    logger.info("ArtisanHub API ready")
    yield
    logger.info("ArtisanHub API shutting down")


async def _handle_domain_error(request: Request, exc: ArtisanHubError) -> JSONResponse:
    record_error(type(exc).__name__)
    if exc.status_code >= 500:
        logger.error("%s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message},
    )


async def _handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report the first invalid field in the standard error envelope."""
    record_error("validation")
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    reason = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": f"Invalid {field}: {reason}" if field else reason},
    )


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    record_error("internal")
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": "Server error"},
    )


def add_exception_handlers(app: FastAPI) -> None:
    """Render domain and request validation errors as the error envelope.

    Both answer ``{"success": false, "message": ...}``; malformed requests
    are reported as 400 rather than FastAPI's default 422.
    """
    app.add_exception_handler(ArtisanHubError, _handle_domain_error)
    app.add_exception_handler(RequestValidationError, _handle_validation_error)
    app.add_exception_handler(Exception, _handle_unexpected_error)


def create_app() -> FastAPI:
    """Application factory."""
    app = FastAPI(
        title="ArtisanHub",
        description="Artisan marketplace API with personalized feed and AI suggestions",
        version="0.1.0",
        lifespan=_lifespan,
    )
    app.add_middleware(LatencyMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )
    add_exception_handlers(app)
    app.include_router(router)
    return app
