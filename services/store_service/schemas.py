"""Pydantic schemas for store service."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)
from services.store_service.models import OrderStatus, ProductSort


def _reject_null(value: Any, info: ValidationInfo) -> Any:
    if value is None:
        raise ValueError(f"{info.field_name} may not be null")
    return value


# ============================================================================
# PRODUCT SCHEMAS
# ============================================================================


class ProductCreate(BaseModel):
    # name/description/price are checked by the handler so that a missing
    # field yields the "Missing required fields" message
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    category: Optional[str] = None
    image: Optional[str] = None
    condition: Optional[str] = Field(None, max_length=50)
    stock: Optional[int] = Field(None, ge=0)

    def missing_required(self) -> bool:
        return not self.name or not self.description or self.price is None


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    category: Optional[str] = None
    image: Optional[str] = None
    condition: Optional[str] = Field(None, max_length=50)
    stock: Optional[int] = Field(None, ge=0)

    @field_validator("name", "description", "price", "stock")
    @classmethod
    def reject_null(cls, value: Any, info: ValidationInfo) -> Any:
        return _reject_null(value, info)


class StockUpdate(BaseModel):
    stock: Optional[int] = Field(None, ge=0)


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: str
    price: float
    category: Optional[str] = None
    image: Optional[str] = None
    condition: Optional[str] = None
    stock: int
    review_count: int = 0
    created_at: datetime
    updated_at: datetime


class ProductQuery(BaseModel):
    """Query-string filters for the product listing. Absent filters are not applied."""

    model_config = ConfigDict(populate_by_name=True)

    category: Optional[str] = None
    search: Optional[str] = None
    min_price: Optional[float] = Field(None, alias="minPrice")
    max_price: Optional[float] = Field(None, alias="maxPrice")
    condition: Optional[str] = None
    sort: Optional[ProductSort] = None

    @model_validator(mode="before")
    @classmethod
    def drop_blank_values(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None and v != ""}
        return data


# ============================================================================
# VARIANT SCHEMAS
# ============================================================================

CONDITION_DETAIL_FIELDS = (
    "battery_health",
    "warranty_months",
    "cosmetic_grade",
    "functional_grade",
    "tested",
    "certified",
    "refurbished",
)


class VariantFields(BaseModel):
    sku: Optional[str] = Field(None, max_length=100)
    color: Optional[str] = Field(None, max_length=50)
    color_hex: Optional[str] = Field(None, max_length=16)
    storage: Optional[str] = Field(None, max_length=50)
    condition: Optional[str] = Field(None, max_length=50)
    price: Optional[Decimal] = Field(None, ge=0)
    original_price: Optional[Decimal] = Field(None, ge=0)
    discount_percentage: Optional[Decimal] = Field(None, ge=0, le=100)
    stock: Optional[int] = Field(None, ge=0)
    is_available: Optional[bool] = None
    images: Optional[list[str]] = None

    # Condition details, stored together as one nested object
    battery_health: Optional[int] = Field(None, ge=0, le=100)
    warranty_months: Optional[int] = Field(None, ge=0)
    cosmetic_grade: Optional[str] = None
    functional_grade: Optional[str] = None
    tested: Optional[bool] = None
    certified: Optional[bool] = None
    refurbished: Optional[bool] = None


class VariantCreate(VariantFields):
    pass


class VariantUpdate(VariantFields):
    @field_validator("condition", "price", "stock", "is_available", "images")
    @classmethod
    def reject_null(cls, value: Any, info: ValidationInfo) -> Any:
        return _reject_null(value, info)


class VariantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: uuid.UUID
    sku: Optional[str] = None
    color: Optional[str] = None
    color_hex: Optional[str] = None
    storage: Optional[str] = None
    condition: str
    price: float
    original_price: Optional[float] = None
    discount_percentage: Optional[float] = None
    stock: int
    is_available: bool
    images: list[str] = []
    condition_details: dict[str, Any] = {}
    created_at: datetime
    updated_at: datetime


# ============================================================================
# SPECIFICATION SCHEMAS
# ============================================================================


class SpecificationCreate(BaseModel):
    spec_key: str = Field(..., min_length=1, max_length=100)
    spec_label: str = Field(..., min_length=1, max_length=255)
    spec_value: str
    spec_category: Optional[str] = Field(None, max_length=50)
    display_order: Optional[int] = None


class SpecificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: uuid.UUID
    spec_key: str
    spec_label: str
    spec_value: str
    spec_category: str
    display_order: int
    created_at: datetime


# ============================================================================
# CATEGORY SCHEMAS
# ============================================================================

_IS_ACTIVE = AliasChoices("isActive", "is_active")


class CategoryCreate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    slug: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    image: Optional[str] = None
    icon: Optional[str] = None
    is_active: Optional[bool] = Field(None, validation_alias=_IS_ACTIVE)


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    slug: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    image: Optional[str] = None
    icon: Optional[str] = None
    is_active: Optional[bool] = Field(None, validation_alias=_IS_ACTIVE)

    @field_validator("name", "slug", "is_active")
    @classmethod
    def reject_null(cls, value: Any, info: ValidationInfo) -> Any:
        return _reject_null(value, info)


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    slug: str
    description: Optional[str] = None
    image: Optional[str] = None
    icon: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


# ============================================================================
# REVIEW / CAROUSEL SCHEMAS
# ============================================================================


class ReviewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: uuid.UUID
    user_id: Optional[str] = None
    author_name: Optional[str] = None
    rating: Optional[int] = None
    title: Optional[str] = None
    comment: Optional[str] = None
    created_at: datetime


class CarouselItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: Optional[str] = None
    subtitle: Optional[str] = None
    image: Optional[str] = None
    link: Optional[str] = None
    display_order: int


# ============================================================================
# ORDER SCHEMAS
# ============================================================================


def _integral_float_to_int(value: Any) -> Any:
    # JSON clients may send 2.0 for 2
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


PositiveQuantity = Annotated[
    int, Field(strict=True, gt=0), BeforeValidator(_integral_float_to_int)
]


class OrderItemIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: uuid.UUID = Field(..., alias="productId")
    variant_id: Optional[uuid.UUID] = Field(None, alias="variantId")
    quantity: PositiveQuantity


class ShippingAddress(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    address_line1: str = Field(..., alias="addressLine1")
    address_line2: Optional[str] = Field(None, alias="addressLine2")
    city: str
    state: str
    postal_code: str = Field(..., alias="postalCode")
    country: str


class OrderCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    items: list[OrderItemIn]
    shipping_address: ShippingAddress = Field(..., alias="shippingAddress")
    payment_method: str = Field(..., alias="paymentMethod")


class OrderStatusUpdate(BaseModel):
    status: Optional[str] = None


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: str
    items: list[dict[str, Any]]
    shipping_address: dict[str, Any]
    payment_method: str
    status: OrderStatus
    created_at: datetime
    updated_at: datetime
