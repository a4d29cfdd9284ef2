"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from nbchat import __version__
from nbchat.api.deps import build_services
from nbchat.api.routes import api_router
from nbchat.config import Settings, get_settings
from nbchat.core.providers import ProviderRegistry
from nbchat.core.tool_registry import ToolRegistry
from nbchat.middleware.logging import LoggingMiddleware, configure_logging
from nbchat.middleware.request_id import RequestIdMiddleware
from nbchat.utils.errors import (
    ErrorCode,
    NbChatError,
    classify_exception,
    create_error_response,
)

logger = logging.getLogger(__name__)

# HTTP status per domain error code; anything else is a 400
ERROR_STATUS_CODES: dict[ErrorCode, int] = {
    ErrorCode.CHAT_NOT_FOUND: 404,
    ErrorCode.NOT_CONFIGURED: 409,
    ErrorCode.UNSUPPORTED_IMPLEMENTATION: 409,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan - startup and shutdown events."""
    services = app.state.services
    settings = services.settings

    configure_logging(
        level=settings.logging.level,
        format=settings.logging.format,
    )

    logger.info(
        "Starting nbchat",
        extra={
            "version": __version__,
            "host": settings.server.host,
            "port": settings.server.port,
            "providers": len(settings.providers),
            "log_level": settings.logging.level,
        },
    )

    try:
        settings.validate_required()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        raise

    if services.settings_model.default_provider is None:
        logger.warning("No AI provider configured; chats will ask for AI settings")

    yield

    logger.info("Shutting down nbchat")
    services.sessions.close_all()


def create_app(
    settings: Settings | None = None,
    provider_registry: ProviderRegistry | None = None,
    tool_registry: ToolRegistry | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings override for testing.
        provider_registry: Optional provider registry; defaults to the
            built-in OpenAI, Anthropic and OpenAI-compatible providers.
        tool_registry: Optional registry of user function tools.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="nbchat",
        description="Notebook chat assistant backend with AI SDK streaming",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.services = build_services(settings, provider_registry, tool_registry)

    # Middleware order matters: last added runs first. The request id must
    # be set before access logging, and CORS must answer preflight requests.
    app.add_middleware(LoggingMiddleware)

    app.add_middleware(RequestIdMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors.allowed_origins,
        allow_credentials=True,
        allow_methods=settings.server.cors.allowed_methods,
        allow_headers=settings.server.cors.allowed_headers,
    )

    app.add_exception_handler(NbChatError, nbchat_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    app.include_router(api_router)

    return app


async def nbchat_error_handler(request: Request, exc: NbChatError) -> JSONResponse:
    """Map domain errors to a status code and an ErrorResponse body."""
    code = classify_exception(exc)
    body = create_error_response(
        code,
        detail=str(exc),
        request_id=getattr(request.state, "request_id", None),
    )
    return JSONResponse(
        status_code=ERROR_STATUS_CODES.get(code, 400),
        content=body.model_dump(mode="json"),
    )


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handle Pydantic validation errors."""
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Validation error",
            "code": ErrorCode.VALIDATION_ERROR.value,
            "errors": exc.errors(include_url=False),
        },
    )


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected errors."""
    request_id = getattr(request.state, "request_id", None)

    logger.exception(
        "Unhandled exception",
        extra={
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
        },
    )

    return JSONResponse(
        status_code=500,
        content=create_error_response(
            ErrorCode.INTERNAL_ERROR, request_id=request_id
        ).model_dump(mode="json"),
    )


# Create the default app instance
app = create_app()
