"""
FastAPI application factory.

Creates and configures the FastAPI application instance.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shared.config import get_settings
from shared.exceptions import MuWiseError

from .dependencies import get_container
from .models.errors import ErrorResponse, ValidationErrorResponse
from .routes import health
from modules.agreements.routes import router as agreements_router
from modules.auth.routes import router as auth_router
from modules.migration.routes import router as migration_router
from modules.users.routes import router as users_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Runs startup and shutdown logic.
    """
    # Startup
    settings = get_settings()
    logger.info(
        "Starting %s on %s:%s (provider: %s)",
        settings.app_name,
        settings.host,
        settings.port,
        get_container().factory.current_provider().value,
    )
    yield
    # Shutdown
    logger.info("Shutting down %s", settings.app_name)


async def muwise_error_handler(request: Request, exc: MuWiseError) -> JSONResponse:
    """Turn any application error into a terminal error body."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    body = ErrorResponse(message=exc.message, code=exc.code, details=exc.details)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    body = ValidationErrorResponse(detail=[dict(error) for error in exc.errors()])
    return JSONResponse(status_code=422, content=jsonable_encoder(body))


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Agreement management API over Firebase or Supabase",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/api/docs" if settings.debug else None,
        redoc_url="/api/redoc" if settings.debug else None,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    app.add_exception_handler(MuWiseError, muwise_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    # Register routes
    app.include_router(health.router, prefix="/api", tags=["health"])
    app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
    app.include_router(users_router, prefix="/api/users", tags=["users"])
    app.include_router(agreements_router, prefix="/api/agreements", tags=["agreements"])
    app.include_router(migration_router, prefix="/api", tags=["migration"])

    return app


# Application instance for uvicorn
app = create_app()
