"""Main FastAPI application module.

This module initializes the FastAPI application, registers all route
handlers, and maps the application's error taxonomy onto HTTP responses.
"""

import logging
from typing import Dict, Type

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.logging_config import setup_logging
from config import API_HOST, API_PORT, CORS_ALLOWED_ORIGINS
from core.database import init_db
from core.dependencies import get_token_manager
from core.exceptions import (
    ConfigurationError,
    ConstraintViolationError,
    DuplicateUsernameError,
    GameReviewError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
    PermissionDeniedError,
    ReferenceViolationError,
    ValidationError,
)
from api.routes import auth, games, reviews, users

logger = logging.getLogger(__name__)

# Most specific class first; the first isinstance match wins
ERROR_STATUS_CODES: Dict[Type[GameReviewError], int] = {
    DuplicateUsernameError: status.HTTP_409_CONFLICT,
    InvalidCredentialsError: status.HTTP_401_UNAUTHORIZED,
    InvalidTokenError: status.HTTP_401_UNAUTHORIZED,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ReferenceViolationError: status.HTTP_409_CONFLICT,
    ConstraintViolationError: status.HTTP_409_CONFLICT,
    PermissionDeniedError: status.HTTP_403_FORBIDDEN,
}


def create_app() -> FastAPI:
    """Build the FastAPI application.

    Returns:
        Configured FastAPI instance.
    """
    application = FastAPI(
        title="Game Review API",
        description="Game catalog with user reviews and bearer-token authentication.",
        version="1.0.0",
    )

    # Configure CORS middleware
    application.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register route handlers
    application.include_router(auth.router)
    application.include_router(users.router)
    application.include_router(games.router)
    application.include_router(reviews.router)

    @application.exception_handler(GameReviewError)
    async def game_review_error_handler(request: Request, exc: GameReviewError):
        if isinstance(exc, ConfigurationError):
            logger.error("Configuration error: %s", exc)
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"detail": "Internal server error"},
            )
        status_code = status.HTTP_400_BAD_REQUEST
        for error_type, code in ERROR_STATUS_CODES.items():
            if isinstance(exc, error_type):
                status_code = code
                break
        headers = None
        if isinstance(exc, InvalidTokenError):
            headers = {"WWW-Authenticate": "Bearer"}
        return JSONResponse(
            status_code=status_code, content={"detail": str(exc)}, headers=headers
        )

    @application.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    @application.on_event("startup")
    def startup_tasks() -> None:
        """Resolve token settings, then create tables if they do not exist yet.

        Raises:
            ConfigurationError: If JWT_SECRET_KEY is unset, so the process
                fails before serving requests.
        """
        get_token_manager()
        init_db()

    @application.get("/", summary="API root", tags=["Info"])
    def root() -> dict:
        return {
            "name": "Game Review API",
            "version": "1.0.0",
            "docs": {
                "swagger": "/docs",
                "redoc": "/redoc",
            },
            "health": "/api/health",
        }

    @application.get("/api/health", summary="Health check", tags=["Health"])
    def health() -> dict:
        """Health check endpoint.

        Returns:
            Dictionary with status "ok".
        """
        return {"status": "ok"}

    return application


# Setup logging
setup_logging()

app = create_app()


# --- Startup code for direct execution ---
if __name__ == "__main__":
    import uvicorn

    server_url = f"http://{API_HOST}:{API_PORT}"
    logger.info("Starting Game Review API at %s (docs: %s/docs)", server_url, server_url)
    uvicorn.run("app:app", host=API_HOST, port=API_PORT, reload=True)
