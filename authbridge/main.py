"""
FastAPI Application Factory
===========================

Entry point of the authentication bridge service.

Routers:
    - /auth/*       : Login, callback, logout and profile endpoints
    - /health       : Health check endpoint

Environment Variables Required:
    - SESSION_SECRET_KEY: Secret for signing the session cookie (32+ chars)

Optional (see authbridge.config.Settings for the full list):
    - SESSION_ID_HEADER, SESSION_ID_KEY, CACHE_KEY_PREFIX
    - PROFILE_TIMEOUT_SECONDS, SESSION_TIMEOUT_SECONDS
    - LOGOUT_URL_PATTERN, DEFAULT_LOGOUT_URL, DEFAULT_SUCCESS_URL
    - ALLOWED_ORIGINS, LOG_LEVEL

Running the Service:
    Development:
        uvicorn authbridge.main:create_app --factory --reload --port 8080

    Production:
        uvicorn authbridge.main:create_app --factory --port 8080 --workers 4

    Direct:
        python -m authbridge.main

    Identity clients are application-specific; embed the bridge with
    create_app(clients=[...]) in your own module to register them.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from .auth import auth_router
from .auth.bridge import AuthBridge, ClientsLike
from .auth.exceptions import AuthBridgeError
from .cache import KeyedCache
from .config import Settings, get_settings, validate_configuration
from .models import HealthResponse

SERVICE_NAME = "authbridge"
SERVICE_VERSION = "1.0.0"


def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s", "module": "%(module)s", "function": "%(funcName)s"}',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup tasks:
        - Configure logging
        - Report configuration problems

    Shutdown tasks:
        - Log shutdown information
    """
    settings: Settings = app.state.settings

    setup_logging(settings.LOG_LEVEL)
    logger = logging.getLogger("authbridge.main")

    report = validate_configuration(settings)
    for error in report["errors"]:
        logger.error(f"Configuration error: {error}")
    for warning in report["warnings"]:
        logger.warning(f"Configuration warning: {warning}")

    logger.info(
        "Authentication bridge started",
        extra={
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "clients": app.state.auth_bridge.clients.names if app.state.auth_bridge.clients else [],
        }
    )

    yield

    logger.info("Authentication bridge shutdown complete")


def create_app(
    settings: Optional[Settings] = None,
    clients: ClientsLike = None,
    cache: Optional[KeyedCache] = None,
) -> FastAPI:
    """
    Application factory function.

    Creates and configures the FastAPI application instance with:
        - Lifespan management
        - Cookie-backed session middleware
        - CORS middleware
        - Route handlers
        - Exception handlers

    Args:
        settings: Settings instance (defaults to get_settings())
        clients: Identity client registry or iterable of identity clients
        cache: Shared keyed cache (defaults to an in-memory cache)

    Returns:
        FastAPI: Configured application instance
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="Authentication Bridge",
        description="Binds external identity clients to the FastAPI request lifecycle",
        version=SERVICE_VERSION,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.auth_bridge = AuthBridge(settings, clients=clients, cache=cache)

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SESSION_SECRET_KEY,
        session_cookie=settings.SESSION_COOKIE_NAME,
        https_only=settings.SESSION_COOKIE_HTTPS_ONLY,
        same_site="lax",
    )

    if settings.allowed_origins_list:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.allowed_origins_list,
            allow_credentials=True,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["*"],
            expose_headers=[settings.SESSION_ID_HEADER],
        )

    app.include_router(auth_router)

    @app.get("/health", tags=["System"], response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        return HealthResponse(status="ok", service=SERVICE_NAME, version=SERVICE_VERSION)

    @app.get("/", tags=["System"])
    async def root() -> Dict[str, Any]:
        """
        Root endpoint with service information.

        Returns:
            dict: Service metadata and available endpoints
        """
        return {
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "endpoints": {
                "health": "/health",
                "docs": "/docs",
                "login": "/auth/login/{client_name}",
                "callback": "/auth/callback",
                "logout": "/auth/logout",
                "profile": "/auth/profile",
            }
        }

    @app.exception_handler(AuthBridgeError)
    async def auth_bridge_exception_handler(request: Request, exc: AuthBridgeError) -> JSONResponse:
        """Configuration and integration faults; never retried."""
        logger = logging.getLogger("authbridge.main")
        logger.error(
            f"Authentication bridge error: {exc}",
            extra={
                "path": request.url.path,
                "exception_type": type(exc).__name__
            }
        )

        return JSONResponse(
            status_code=500,
            content={
                "error": "configuration_error",
                "message": str(exc),
                "detail": type(exc).__name__,
            }
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """
        Global exception handler for unhandled errors.

        Logs the error and returns a standardized error response.
        """
        logger = logging.getLogger("authbridge.main")
        logger.error(
            f"Unhandled exception: {str(exc)}",
            extra={
                "path": request.url.path,
                "method": request.method,
                "exception_type": type(exc).__name__
            },
            exc_info=True
        )

        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred",
                "detail": str(exc) if settings.LOG_LEVEL == "DEBUG" else None
            }
        )

    return app


if __name__ == "__main__":
    """
    Direct execution entry point.

    This allows running the service directly with: python -m authbridge.main
    However, using uvicorn command is recommended for production.
    """
    settings = get_settings()

    uvicorn.run(
        "authbridge.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8080,
        reload=True,
        log_level=settings.LOG_LEVEL.lower()
    )
