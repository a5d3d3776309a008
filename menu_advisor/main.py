"""
main.py

This is the main entry point of the FastAPI application.
Here we create the FastAPI app and register middleware, error handlers
and API routes.

This file does NOT contain business logic.
It only wires everything together.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from menu_advisor.config import APP_NAME, APP_VERSION, CORS_ORIGINS, ENVIRONMENT, LOG_LEVEL
from menu_advisor.exceptions import MenuAnalysisError

# Import API routers
from menu_advisor.api.health import router as health_router
from menu_advisor.api.analyze import router as analyze_router
from menu_advisor.api.middleware import (
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    http_exception_handler,
    menu_analysis_exception_handler,
    unhandled_exception_handler,
)

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """
    Creates and returns the FastAPI application instance.
    This function helps keep the app creation clean and testable.
    """
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    app = FastAPI(
        title=APP_NAME,
        description="Reads a menu photo with OCR and rates each dish against your nutrition goal",
        version=APP_VERSION
    )

    # Middleware added last runs first, so request IDs exist before anything else
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)

    if CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=CORS_ORIGINS,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
            expose_headers=["X-Request-ID"]
        )

    # Every error leaves the service in the same envelope
    app.add_exception_handler(MenuAnalysisError, menu_analysis_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Register API routes
    app.include_router(health_router, prefix="/api/health", tags=["Health"])
    app.include_router(analyze_router, prefix="/api/analyze", tags=["Analyze"])

    logger.info(f"{APP_NAME} {APP_VERSION} started ({ENVIRONMENT})")

    return app


# Create the FastAPI app instance
app = create_app()
