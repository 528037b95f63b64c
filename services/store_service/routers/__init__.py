"""Store service routers package."""

from services.store_service.routers.catalog import router as catalog_router
from services.store_service.routers.categories import router as categories_router
from services.store_service.routers.orders import router as orders_router
from services.store_service.routers.variants import router as variants_router

__all__ = [
    "catalog_router",
    "categories_router",
    "orders_router",
    "variants_router",
]
