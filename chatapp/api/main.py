"""
FastAPI Application

HTTP front end for the chat service with:
- Lifespan management for the application context (store, client, manager)
- CORS middleware for the browser UI
- Exception handlers mapping chat errors to user-facing responses

Usage:
    uvicorn chatapp.api.main:app --reload --port 8000
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chatapp import __version__
from chatapp.api.routes import chat, health, sessions
from chatapp.config import get_settings
from chatapp.context import AppContext, build_context
from chatapp.errors import (
    AuthError,
    BillingError,
    BusyError,
    ChatError,
    CompletionError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    ResponseFormatError,
    ServerError,
    ValidationError,
)

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    BusyError: status.HTTP_409_CONFLICT,
    AuthError: status.HTTP_401_UNAUTHORIZED,
    BillingError: status.HTTP_402_PAYMENT_REQUIRED,
    RateLimitError: status.HTTP_429_TOO_MANY_REQUESTS,
    ServerError: status.HTTP_502_BAD_GATEWAY,
    ResponseFormatError: status.HTTP_502_BAD_GATEWAY,
    NetworkError: status.HTTP_503_SERVICE_UNAVAILABLE,
    CompletionError: status.HTTP_502_BAD_GATEWAY,
}


def status_for_error(exc: ChatError) -> int:
    """Most specific HTTP status registered for the error's class."""
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def create_app(context: AppContext | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        context: Prebuilt application context. When omitted the lifespan
            builds one from settings and closes it on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owns_context = context is None
        app.state.context = context if context is not None else build_context()
        logger.info("Chat API server started")
        try:
            yield
        finally:
            logger.info("Shutting down chat API server...")
            if owns_context:
                await app.state.context.aclose()
            logger.info("Chat API server shut down complete")

    app = FastAPI(
        title="Chat API",
        description="Chat sessions in front of a hosted language-model completion API",
        version=__version__,
        lifespan=lifespan,
    )

    settings = context.settings if context is not None else get_settings()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ChatError)
    async def chat_error_handler(request: Request, exc: ChatError) -> JSONResponse:
        """Return the error's user-facing message with a matching status."""
        status_code = status_for_error(exc)
        log = logger.warning if status_code < 500 else logger.error
        log(
            f"Chat error: {exc.message}",
            extra={"error_type": exc.code, "path": request.url.path, **exc.context},
        )
        return JSONResponse(
            status_code=status_code,
            content={
                "error": exc.code,
                "message": exc.user_message,
                "recoverable": exc.recoverable,
            },
        )

    app.include_router(health.router, prefix="/api/v1", tags=["health"])
    app.include_router(chat.router, prefix="/api/v1", tags=["chat"])
    app.include_router(sessions.router, prefix="/api/v1", tags=["sessions"])

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint with API information."""
        return {
            "name": "Chat API",
            "version": __version__,
            "description": "Chat sessions in front of a hosted completion API",
            "docs": "/docs",
        }

    return app


app = create_app()
