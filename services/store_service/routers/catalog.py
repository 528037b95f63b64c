"""Store catalog router: products, stock, reviews, carousel."""

import uuid

from fastapi import APIRouter, Depends, Request, status
from libs.common.errors import BadRequestError, success_response
from libs.db.session import get_async_db
from libs.db.store import delete_with_children, fetch_all, insert_row, update_row
from services.store_service.models import (
    CarouselItem,
    Product,
    ProductSort,
    ProductSpecification,
    ProductVariant,
    Review,
)
from services.store_service.routers._helpers import get_product_or_404
from services.store_service.schemas import (
    CarouselItemResponse,
    ProductCreate,
    ProductQuery,
    ProductResponse,
    ProductUpdate,
    ReviewResponse,
    StockUpdate,
)
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/api", tags=["catalog"])

SORT_ORDER = {
    ProductSort.NEWEST: (Product.created_at.desc(),),
    ProductSort.PRICE_LOW: (Product.price.asc(),),
    ProductSort.PRICE_HIGH: (Product.price.desc(),),
    ProductSort.POPULAR: (Product.review_count.desc(),),
}

# Removed together with the product, in this order
PRODUCT_CHILDREN = (
    ProductVariant.product_id,
    ProductSpecification.product_id,
    Review.product_id,
)


def get_product_query(request: Request) -> ProductQuery:
    """Parse listing filters; numeric filters arrive as text and are coerced here."""
    return ProductQuery.model_validate(dict(request.query_params))


# ============================================================================
# PRODUCTS
# ============================================================================


@router.get("/products", response_model=list[ProductResponse])
async def list_products(
    params: ProductQuery = Depends(get_product_query),
    db: AsyncSession = Depends(get_async_db),
):
    """Browse products with optional filters and sorting."""
    query = select(Product)

    if params.category:
        query = query.where(Product.category == params.category)

    if params.search:
        search_term = f"%{params.search}%"
        query = query.where(
            or_(Product.name.ilike(search_term), Product.description.ilike(search_term))
        )

    if params.min_price is not None:
        query = query.where(Product.price >= params.min_price)

    if params.max_price is not None:
        query = query.where(Product.price <= params.max_price)

    if params.condition:
        query = query.where(Product.condition == params.condition)

    query = query.order_by(*SORT_ORDER[params.sort or ProductSort.NEWEST])

    products = await fetch_all(db, query)
    return success_response([ProductResponse.model_validate(p) for p in products])


@router.post(
    "/products", response_model=ProductResponse, status_code=status.HTTP_201_CREATED
)
async def create_product(
    payload: ProductCreate,
    db: AsyncSession = Depends(get_async_db),
):
    if payload.missing_required():
        raise BadRequestError("Missing required fields: name, description, price")

    product = Product(
        name=payload.name,
        description=payload.description,
        price=payload.price,
        category=payload.category or None,
        image=payload.image or None,
        condition=payload.condition or None,
        stock=payload.stock or 0,
    )
    product = await insert_row(db, product)
    return success_response(
        ProductResponse.model_validate(product), status_code=status.HTTP_201_CREATED
    )


@router.get("/products/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_db),
):
    product = await get_product_or_404(db, product_id)
    return success_response(ProductResponse.model_validate(product))


@router.put("/products/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: uuid.UUID,
    payload: ProductUpdate,
    db: AsyncSession = Depends(get_async_db),
):
    """Update only the fields present in the request body."""
    product = await get_product_or_404(db, product_id)
    product = await update_row(db, product, payload.model_dump(exclude_unset=True))
    return success_response(ProductResponse.model_validate(product))


@router.delete("/products/{product_id}")
async def delete_product(
    product_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_db),
):
    """Delete a product together with its variants, specifications and reviews."""
    product = await get_product_or_404(db, product_id)
    await delete_with_children(db, product, PRODUCT_CHILDREN)
    return success_response({"message": "Product deleted successfully"})


@router.put("/products/{product_id}/stock", response_model=ProductResponse)
async def update_product_stock(
    product_id: uuid.UUID,
    payload: StockUpdate,
    db: AsyncSession = Depends(get_async_db),
):
    if payload.stock is None:
        raise BadRequestError("Stock value is required")

    product = await get_product_or_404(db, product_id)
    product = await update_row(db, product, {"stock": payload.stock})
    return success_response(ProductResponse.model_validate(product))


# ============================================================================
# REVIEWS
# ============================================================================


@router.get("/products/{product_id}/reviews", response_model=list[ReviewResponse])
async def list_product_reviews(
    product_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_db),
):
    query = (
        select(Review)
        .where(Review.product_id == product_id)
        .order_by(Review.created_at.desc())
    )
    reviews = await fetch_all(db, query)
    return success_response([ReviewResponse.model_validate(r) for r in reviews])


# ============================================================================
# CAROUSEL
# ============================================================================


@router.get("/carousel", response_model=list[CarouselItemResponse])
async def list_carousel(db: AsyncSession = Depends(get_async_db)):
    query = select(CarouselItem).order_by(
        CarouselItem.display_order, CarouselItem.created_at
    )
    items = await fetch_all(db, query)
    return success_response([CarouselItemResponse.model_validate(i) for i in items])
