"""
FastAPI Application Factory

Creates the read-only gold layer API.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
import structlog

from sales_dwh.config import get_settings
from sales_dwh.database.connection import close_database
from sales_dwh.serving.api.middleware import RequestLoggingMiddleware
from sales_dwh.serving.api.routes import (
    health_router,
    customers_router,
    products_router,
    sales_router,
    quality_router,
)
from sales_dwh.storage.layer_store import LayerStore

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    from sales_dwh.config.logging import configure_logging
    configure_logging()

    logger.info("Starting sales warehouse API", lake_path=str(app.state.store.root))
    yield

    logger.info("Shutting down...")
    close_database()


def create_api_app(store: Optional[LayerStore] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        store: Layer store to serve from; defaults to the configured data lake

    Returns:
        Configured FastAPI app instance
    """
    settings = get_settings()

    app = FastAPI(
        title="Sales Data Warehouse API",
        description="Read-only access to the gold star schema",
        version=settings.version,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )
    app.state.store = store or LayerStore()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(health_router, prefix="/api/v1", tags=["Health"])
    app.include_router(customers_router, prefix="/api/v1/customers", tags=["Customers"])
    app.include_router(products_router, prefix="/api/v1/products", tags=["Products"])
    app.include_router(sales_router, prefix="/api/v1/sales", tags=["Sales"])
    app.include_router(quality_router, prefix="/api/v1/quality", tags=["Quality"])

    @app.get("/api/v1/info")
    def api_info():
        """API information endpoint."""
        return {
            "name": "Sales Data Warehouse API",
            "version": settings.version,
            "environment": settings.app_env,
            "documentation": "/docs",
        }

    return app
