"""Store Service models package."""

from services.store_service.models.catalog import (
    CarouselItem,
    Category,
    Product,
    ProductSpecification,
    ProductVariant,
    Review,
)
from services.store_service.models.commerce import Order, OrderItem
from services.store_service.models.enums import OrderStatus, ProductSort

__all__ = [
    "CarouselItem",
    "Category",
    "Order",
    "OrderItem",
    "OrderStatus",
    "Product",
    "ProductSort",
    "ProductSpecification",
    "ProductVariant",
    "Review",
]
