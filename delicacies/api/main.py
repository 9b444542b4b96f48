"""
Bihari Delicacies API

FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from fastapi import FastAPI

from .schemas import Envelope, HealthStatus
from .routes import auth, sellers, products, uploads, orders, tables
from .middleware import (
    setup_cors,
    setup_rate_limiting,
    setup_logging,
    setup_exception_handlers,
    RateLimitConfig,
    LoggingConfig,
    get_cors_config,
)
from .dependencies import (
    get_settings,
    ServiceContainer,
    Settings,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# =============================================================================
# Application Lifespan
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Handles startup and shutdown tasks:
    - Pick the record store backend and seed demonstration data
    - Close backend connections on shutdown
    """
    services: ServiceContainer = app.state.services
    settings: Settings = app.state.settings
    logger.info(f"Starting Bihari Delicacies in {settings.environment} mode")

    try:
        store = services.record_store
        logger.info(f"Record store ready ({store.backend_name})")

        yield

    finally:
        logger.info("Shutting down Bihari Delicacies...")
        services.close()
        logger.info("Shutdown complete")


# =============================================================================
# Application Factory
# =============================================================================

def create_app(settings: Settings = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Application settings. If None, loads from environment.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="Bihari Delicacies",
        description="Marketplace API for regional sweets and snacks.",
        version="1.0.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    # Backends are built on first access, not here
    app.state.settings = settings
    app.state.services = ServiceContainer(settings)

    # ==========================================================================
    # Middleware (last added = outermost)
    # ==========================================================================

    setup_logging(
        app,
        config=LoggingConfig(
            enabled=True,
            log_request_body=settings.debug,
            excluded_paths={f"{settings.api_prefix}/health", "/favicon.ico"},
        ),
        structured=settings.environment != "development",
    )

    setup_exception_handlers(app)

    if settings.rate_limit_enabled:
        setup_rate_limiting(
            app,
            config=RateLimitConfig(
                requests_per_minute=settings.rate_limit_requests_per_minute,
                enabled=settings.rate_limit_enabled,
                trusted_proxy_headers=[
                    h.strip() for h in settings.trusted_proxy_headers.split(",") if h.strip()
                ],
                excluded_paths=[
                    f"{settings.api_prefix}/health",
                    "/docs",
                    "/openapi.json",
                    "/redoc",
                ],
            ),
        )

    setup_cors(app, config=get_cors_config(settings.environment))

    # ==========================================================================
    # Routers
    # ==========================================================================

    api_prefix = settings.api_prefix

    for module in (auth, sellers, products, uploads, orders, tables):
        app.include_router(module.router, prefix=api_prefix)

    # ==========================================================================
    # Root Routes
    # ==========================================================================

    @app.get(f"{api_prefix}/health", response_model=Envelope[HealthStatus], tags=["System"])
    async def health_check():
        """Liveness probe."""
        return {"data": {"ok": True}}

    return app


# =============================================================================
# Application Instance
# =============================================================================

app = create_app()


# =============================================================================
# CLI Entry Point
# =============================================================================

def main():
    """Run the application using uvicorn."""
    import os
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "delicacies.api.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "3001")),
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
