"""Store variants and specifications router."""

import uuid
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from libs.common.errors import success_response
from libs.db.session import get_async_db
from libs.db.store import atomic, delete_row, fetch_all, get_or_404, insert_row, update_row
from services.store_service.models import ProductSpecification, ProductVariant
from services.store_service.routers._helpers import get_product_or_404
from services.store_service.schemas import (
    CONDITION_DETAIL_FIELDS,
    SpecificationCreate,
    SpecificationResponse,
    VariantCreate,
    VariantResponse,
    VariantUpdate,
)
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/api/products/{product_id}", tags=["catalog"])


def _new_condition_details(payload: VariantCreate) -> dict[str, Any]:
    return {
        "battery_health": payload.battery_health,
        "warranty_months": payload.warranty_months or 0,
        "cosmetic_grade": payload.cosmetic_grade,
        "functional_grade": payload.functional_grade,
        # Flags default to true unless explicitly false
        "tested": payload.tested is not False,
        "certified": payload.certified is not False,
        "refurbished": payload.refurbished is not False,
    }


async def _get_variant_or_404(
    db: AsyncSession, product_id: uuid.UUID, variant_id: uuid.UUID
) -> ProductVariant:
    return await get_or_404(
        db,
        ProductVariant,
        ProductVariant.id == variant_id,
        ProductVariant.product_id == product_id,
        message="Variant not found",
    )


# ============================================================================
# VARIANTS
# ============================================================================


@router.get("/variants", response_model=list[VariantResponse])
async def list_variants(
    product_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_db),
):
    query = (
        select(ProductVariant)
        .where(ProductVariant.product_id == product_id)
        .order_by(ProductVariant.created_at)
    )
    variants = await fetch_all(db, query)
    return success_response([VariantResponse.model_validate(v) for v in variants])


@router.post(
    "/variants", response_model=VariantResponse, status_code=status.HTTP_201_CREATED
)
async def create_variant(
    product_id: uuid.UUID,
    payload: VariantCreate,
    db: AsyncSession = Depends(get_async_db),
):
    await get_product_or_404(db, product_id)

    variant = ProductVariant(
        product_id=product_id,
        sku=payload.sku or None,
        color=payload.color or None,
        color_hex=payload.color_hex or None,
        storage=payload.storage or None,
        condition=payload.condition or "excellent",
        price=payload.price or 0,
        original_price=payload.original_price or None,
        discount_percentage=payload.discount_percentage or None,
        stock=payload.stock or 0,
        is_available=payload.is_available is not False,
        images=payload.images or [],
        condition_details=_new_condition_details(payload),
    )
    variant = await insert_row(db, variant)
    return success_response(
        VariantResponse.model_validate(variant), status_code=status.HTTP_201_CREATED
    )


@router.get("/variants/{variant_id}", response_model=VariantResponse)
async def get_variant(
    product_id: uuid.UUID,
    variant_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_db),
):
    variant = await _get_variant_or_404(db, product_id, variant_id)
    return success_response(VariantResponse.model_validate(variant))


@router.put("/variants/{variant_id}", response_model=VariantResponse)
async def update_variant(
    product_id: uuid.UUID,
    variant_id: uuid.UUID,
    payload: VariantUpdate,
    db: AsyncSession = Depends(get_async_db),
):
    """
    Update only the fields present in the body. Condition-detail fields are
    merged into the stored ``condition_details`` object key by key.
    """
    variant = await _get_variant_or_404(db, product_id, variant_id)

    changes = payload.model_dump(exclude_unset=True)
    detail_changes = {
        field: changes.pop(field) for field in CONDITION_DETAIL_FIELDS if field in changes
    }
    if detail_changes:
        changes["condition_details"] = {
            **(variant.condition_details or {}),
            **detail_changes,
        }

    variant = await update_row(db, variant, changes)
    return success_response(VariantResponse.model_validate(variant))


@router.delete("/variants/{variant_id}")
async def delete_variant(
    product_id: uuid.UUID,
    variant_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_db),
):
    variant = await _get_variant_or_404(db, product_id, variant_id)
    await delete_row(db, variant)
    return success_response({"message": "Variant deleted successfully"})


# ============================================================================
# SPECIFICATIONS
# ============================================================================


@router.get("/specifications", response_model=list[SpecificationResponse])
async def list_specifications(
    product_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_db),
):
    query = (
        select(ProductSpecification)
        .where(ProductSpecification.product_id == product_id)
        .order_by(ProductSpecification.display_order.asc())
    )
    specs = await fetch_all(db, query)
    return success_response([SpecificationResponse.model_validate(s) for s in specs])


@router.post(
    "/specifications",
    response_model=SpecificationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_specification(
    product_id: uuid.UUID,
    payload: SpecificationCreate,
    db: AsyncSession = Depends(get_async_db),
):
    await get_product_or_404(db, product_id)

    spec = ProductSpecification(
        product_id=product_id,
        spec_key=payload.spec_key,
        spec_label=payload.spec_label,
        spec_value=payload.spec_value,
        spec_category=payload.spec_category or "other",
        display_order=payload.display_order or 0,
    )
    spec = await insert_row(db, spec)
    return success_response(
        SpecificationResponse.model_validate(spec), status_code=status.HTTP_201_CREATED
    )


@router.delete("/specifications")
async def delete_specifications(
    product_id: uuid.UUID,
    spec_id: Optional[uuid.UUID] = Query(None, alias="specId"),
    db: AsyncSession = Depends(get_async_db),
):
    """Delete one specification (``specId``) or every specification of the product."""
    if spec_id is not None:
        spec = await get_or_404(
            db,
            ProductSpecification,
            ProductSpecification.id == spec_id,
            ProductSpecification.product_id == product_id,
            message="Specification not found",
        )
        await delete_row(db, spec)
    else:
        async with atomic(db):
            await db.execute(
                delete(ProductSpecification).where(
                    ProductSpecification.product_id == product_id
                )
            )

    return success_response({"message": "Specifications deleted successfully"})
