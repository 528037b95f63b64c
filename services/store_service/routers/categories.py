"""Store categories router."""

import uuid

from fastapi import APIRouter, Depends, status
from libs.common.errors import BadRequestError, success_response
from libs.db.session import get_async_db
from libs.db.store import delete_row, fetch_all, get_or_404, insert_row, update_row
from services.store_service.models import Category
from services.store_service.routers._helpers import slugify
from services.store_service.schemas import (
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/api/categories", tags=["catalog"])


async def _get_category_or_404(db: AsyncSession, category_id: uuid.UUID) -> Category:
    return await get_or_404(
        db, Category, Category.id == category_id, message="Category not found"
    )


@router.get("", response_model=list[CategoryResponse])
async def list_categories(db: AsyncSession = Depends(get_async_db)):
    """List all active categories."""
    query = select(Category).where(Category.is_active.is_(True)).order_by(Category.name)
    categories = await fetch_all(db, query)
    return success_response([CategoryResponse.model_validate(c) for c in categories])


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    payload: CategoryCreate,
    db: AsyncSession = Depends(get_async_db),
):
    if not payload.name:
        raise BadRequestError("Category name is required")

    category = Category(
        name=payload.name,
        slug=payload.slug or slugify(payload.name),
        description=payload.description or None,
        image=payload.image or None,
        icon=payload.icon or None,
        is_active=payload.is_active is not False,
    )
    category = await insert_row(db, category)
    return success_response(
        CategoryResponse.model_validate(category), status_code=status.HTTP_201_CREATED
    )


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(
    category_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_db),
):
    category = await _get_category_or_404(db, category_id)
    return success_response(CategoryResponse.model_validate(category))


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: uuid.UUID,
    payload: CategoryUpdate,
    db: AsyncSession = Depends(get_async_db),
):
    category = await _get_category_or_404(db, category_id)
    category = await update_row(db, category, payload.model_dump(exclude_unset=True))
    return success_response(CategoryResponse.model_validate(category))


@router.delete("/{category_id}")
async def delete_category(
    category_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_db),
):
    category = await _get_category_or_404(db, category_id)
    await delete_row(db, category)
    return success_response({"message": "Category deleted successfully"})
