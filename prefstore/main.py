from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from prefstore import __version__
from prefstore.api import preferences
from prefstore.errors import (
    AuthenticationRequiredError,
    ImportFormatError,
    RemoteWriteError,
    StorageError,
)
from prefstore.schemas.error import ErrorType, ValidationErrorDetail
from prefstore.services.dependencies import PreferenceServices, build_preference_services
from prefstore.settings import AppSettings, get_settings
from prefstore.utils.error_responses import (
    build_error_response,
    build_validation_error_response,
)

logger = logging.getLogger(__name__)


def configure_logging(settings: AppSettings) -> None:
    logging.basicConfig(
        level=settings.log_level_numeric,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _error_json(
    request: Request,
    *,
    error_type: ErrorType,
    message: str,
    detail: str | None,
    status_code: int,
) -> JSONResponse:
    error_response = build_error_response(
        error_type=error_type,
        message=message,
        detail=detail,
        status_code=status_code,
        path=str(request.url.path),
    )
    return JSONResponse(
        status_code=status_code,
        content=error_response.model_dump(mode="json"),
    )


def _validation_json(request: Request, errors: list[dict], message: str) -> JSONResponse:
    details = [
        ValidationErrorDetail(
            field=".".join(str(loc) for loc in error["loc"]),
            message=error["msg"],
            value=error.get("input"),
        )
        for error in errors
    ]
    error_response = build_validation_error_response(
        message=message,
        detail=f"{len(details)} validation error(s)",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        path=str(request.url.path),
        errors=details,
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_response.model_dump(mode="json"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle FastAPI request validation errors."""
        logger.warning(
            "Validation error for request to %s: %s errors",
            request.url.path,
            len(exc.errors()),
        )
        return _validation_json(request, list(exc.errors()), "Request validation failed")

    @app.exception_handler(ValidationError)
    async def pydantic_validation_exception_handler(request: Request, exc: ValidationError):
        """Handle Pydantic validation errors raised while building documents."""
        logger.warning(
            "Pydantic validation error for request to %s: %s errors",
            request.url.path,
            exc.error_count(),
        )
        return _validation_json(request, exc.errors(), "Data validation failed")

    @app.exception_handler(ImportFormatError)
    async def import_format_exception_handler(request: Request, exc: ImportFormatError):
        logger.warning("Rejected favorites import to %s: %s", request.url.path, exc)
        return _error_json(
            request,
            error_type=ErrorType.IMPORT_FORMAT_ERROR,
            message="Import payload is invalid",
            detail=str(exc),
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    @app.exception_handler(AuthenticationRequiredError)
    async def authentication_exception_handler(
        request: Request, exc: AuthenticationRequiredError
    ):
        return _error_json(
            request,
            error_type=ErrorType.AUTHENTICATION_ERROR,
            message="Authentication required",
            detail=str(exc),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    @app.exception_handler(StorageError)
    async def storage_exception_handler(request: Request, exc: StorageError):
        """Handle local cache read/write failures."""
        logger.error("Storage error for request to %s: %s", request.url.path, exc)
        return _error_json(
            request,
            error_type=ErrorType.STORAGE_ERROR,
            message="Local preference storage is unavailable",
            detail=str(exc),
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    @app.exception_handler(RemoteWriteError)
    async def remote_write_exception_handler(request: Request, exc: RemoteWriteError):
        """Handle failed write-through calls to the remote store."""
        logger.error("Remote write error for request to %s: %s", request.url.path, exc)
        return _error_json(
            request,
            error_type=ErrorType.REMOTE_WRITE_ERROR,
            message="Remote preference store rejected the write",
            detail=str(exc),
            status_code=status.HTTP_502_BAD_GATEWAY,
        )


def create_app(
    settings: AppSettings | None = None,
    *,
    services: PreferenceServices | None = None,
) -> FastAPI:
    """Build the application.

    Pre-built ``services`` are used as-is (and not closed on shutdown), which is
    how tests inject in-memory backends.
    """

    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for startup and shutdown events."""
        for warning in settings.optional_config_warnings():
            logger.warning(warning)

        owned = services is None
        if owned:
            app.state.preferences = await build_preference_services(settings)
        logger.info(
            "Preferences API ready (storage=%s, remote=%s)",
            settings.storage_backend,
            settings.remote_backend,
        )

        yield

        logger.info("Shutting down preferences API")
        if owned:
            await app.state.preferences.close()

    app = FastAPI(
        title="Preferences API",
        version=__version__,
        description="Favorited hotels and recent searches for guests and signed-in users.",
        lifespan=lifespan,
        redirect_slashes=False,
    )
    if services is not None:
        app.state.preferences = services
    register_exception_handlers(app)
    app.include_router(preferences.router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


configure_logging(get_settings())
app = create_app()
