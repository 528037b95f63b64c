"""Shared helpers for store routers."""

import re
import uuid

from libs.db.store import get_or_404
from services.store_service.models import Product
from sqlalchemy.ext.asyncio import AsyncSession

_WHITESPACE = re.compile(r"\s+")


def slugify(name: str) -> str:
    """Lower-case the name and replace each run of whitespace with one hyphen."""
    return _WHITESPACE.sub("-", name.lower())


async def get_product_or_404(db: AsyncSession, product_id: uuid.UUID) -> Product:
    return await get_or_404(db, Product, Product.id == product_id, message="Product not found")
