"""
API Routes Module
"""
from .health import router as health_router
from .customers import router as customers_router
from .products import router as products_router
from .sales import router as sales_router
from .quality import router as quality_router

__all__ = [
    "health_router",
    "customers_router",
    "products_router",
    "sales_router",
    "quality_router",
]
