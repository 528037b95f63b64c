"""
Model factories for creating valid test data.

Every factory produces a valid, insertable SQLAlchemy model instance.
Override any field via kwargs.

Usage:
    product = ProductFactory.create(name="iPhone 13")
    await persist(database, product)
"""

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import func, select

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _uuid() -> uuid.UUID:
    return uuid.uuid4()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _unique_email() -> str:
    return f"test-{uuid.uuid4().hex[:8]}@test.com"


async def persist(database, *rows):
    """Insert rows in their own committed transaction."""
    async with database.session() as session:
        session.add_all(rows)
        await session.commit()
    return rows


async def count_rows(database, model, *criteria) -> int:
    async with database.session() as session:
        result = await session.execute(
            select(func.count()).select_from(model).where(*criteria)
        )
        return result.scalar_one()


async def load(database, model, *criteria):
    """Read one row through a fresh session, or None."""
    async with database.session() as session:
        result = await session.execute(select(model).where(*criteria))
        return result.scalars().first()


# ---------------------------------------------------------------------------
# Members Service
# ---------------------------------------------------------------------------


class UserFactory:
    @staticmethod
    def create(**overrides):
        from libs.auth.models import UserRole
        from services.members_service.models import User

        defaults = {
            "id": _uuid(),
            "auth_id": f"user_{uuid.uuid4().hex[:12]}",
            "email": _unique_email(),
            "name": "Test User",
            "role": UserRole.CUSTOMER,
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return User(**defaults)


# ---------------------------------------------------------------------------
# Store Service
# ---------------------------------------------------------------------------


class ProductFactory:
    @staticmethod
    def create(**overrides):
        from services.store_service.models import Product

        defaults = {
            "id": _uuid(),
            "name": f"Test Phone {uuid.uuid4().hex[:4]}",
            "description": "A refurbished test phone",
            "price": Decimal("499.00"),
            "category": "phones",
            "condition": "excellent",
            "stock": 10,
            "review_count": 0,
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return Product(**defaults)


class VariantFactory:
    @staticmethod
    def create(product_id, **overrides):
        from services.store_service.models import ProductVariant

        defaults = {
            "id": _uuid(),
            "product_id": product_id,
            "sku": f"SKU-{uuid.uuid4().hex[:6].upper()}",
            "color": "Black",
            "storage": "128GB",
            "condition": "excellent",
            "price": Decimal("499.00"),
            "stock": 5,
            "is_available": True,
            "images": [],
            "condition_details": {
                "battery_health": 90,
                "warranty_months": 12,
                "cosmetic_grade": "A",
                "functional_grade": "A",
                "tested": True,
                "certified": True,
                "refurbished": True,
            },
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return ProductVariant(**defaults)


class SpecificationFactory:
    @staticmethod
    def create(product_id, **overrides):
        from services.store_service.models import ProductSpecification

        defaults = {
            "id": _uuid(),
            "product_id": product_id,
            "spec_key": "display",
            "spec_label": "Display",
            "spec_value": "6.1 inch OLED",
            "spec_category": "screen",
            "display_order": 0,
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return ProductSpecification(**defaults)


class ReviewFactory:
    @staticmethod
    def create(product_id, **overrides):
        from services.store_service.models import Review

        defaults = {
            "id": _uuid(),
            "product_id": product_id,
            "user_id": "user_reviewer",
            "author_name": "Reviewer",
            "rating": 5,
            "title": "Great",
            "comment": "Works like new",
            "created_at": _now(),
        }
        defaults.update(overrides)
        return Review(**defaults)


class CategoryFactory:
    @staticmethod
    def create(**overrides):
        from services.store_service.models import Category

        suffix = uuid.uuid4().hex[:6]
        defaults = {
            "id": _uuid(),
            "name": f"Category {suffix}",
            "slug": f"category-{suffix}",
            "is_active": True,
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return Category(**defaults)


class CarouselItemFactory:
    @staticmethod
    def create(**overrides):
        from services.store_service.models import CarouselItem

        defaults = {
            "id": _uuid(),
            "title": "Spring sale",
            "subtitle": "Up to 30% off",
            "image": "https://cdn.test/banner.png",
            "link": "/sale",
            "display_order": 0,
            "created_at": _now(),
        }
        defaults.update(overrides)
        return CarouselItem(**defaults)


class OrderFactory:
    @staticmethod
    def create(user_id, **overrides):
        from services.store_service.models import Order, OrderStatus

        defaults = {
            "id": _uuid(),
            "user_id": user_id,
            "items": [{"productId": str(_uuid()), "quantity": 1}],
            "shipping_address": {
                "name": "Test Buyer",
                "addressLine1": "1 Main St",
                "city": "Lagos",
                "state": "LA",
                "postalCode": "100001",
                "country": "NG",
            },
            "payment_method": "card",
            "status": OrderStatus.PENDING,
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return Order(**defaults)


def minutes_ago(minutes: int) -> datetime:
    return _now() - timedelta(minutes=minutes)
