"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from kickshaus.api.middleware.error_handler import error_handler_middleware
from kickshaus.api.middleware.latency_logging import latency_logging_middleware
from kickshaus.api.middleware.request_size import request_size_limit_middleware
from kickshaus.api.routes import cart, health, payments, webhooks
from kickshaus.api.routes.orders import admin_router, router as orders_router
from kickshaus.core.config import get_settings
from kickshaus.core.expiry_sweeper import init_expiry_sweeper, shutdown_expiry_sweeper

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Starts the expired order sweep and stops it on shutdown.
    """
    settings = get_settings()
    logger.info("Starting %s in %s mode", settings.app_name, settings.app_env)

    if not settings.is_paystack_configured:
        logger.warning("Paystack is not configured; card checkout is disabled")

    await init_expiry_sweeper()

    yield

    await shutdown_expiry_sweeper()
    logger.info("Shutting down %s", settings.app_name)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Kickshaus API",
        description="Checkout and payment settlement backend for the Kickshaus store",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(BaseHTTPMiddleware, dispatch=error_handler_middleware)
    app.add_middleware(BaseHTTPMiddleware, dispatch=latency_logging_middleware)
    app.add_middleware(BaseHTTPMiddleware, dispatch=request_size_limit_middleware)

    # Health routes at root level (no prefix)
    app.include_router(health.router)

    api_v1_router = APIRouter(prefix="/api/v1")
    api_v1_router.include_router(cart.router)
    api_v1_router.include_router(payments.router)
    api_v1_router.include_router(orders_router)
    api_v1_router.include_router(admin_router)
    api_v1_router.include_router(webhooks.router)
    app.include_router(api_v1_router)

    return app


# Create application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "kickshaus.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
