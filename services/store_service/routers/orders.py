"""Store orders router: order placement, history, and status changes.

Non-admin callers only ever see their own orders. An order that exists but
belongs to someone else is reported as not found.
"""

import uuid

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import get_caller_role, get_current_user
from libs.auth.models import AuthUser
from libs.auth.policy import Action, is_allowed
from libs.common.errors import BadRequestError, success_response
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from libs.db.store import atomic, delete_with_children, fetch_all, get_or_404, update_row
from services.store_service.models import Order, OrderItem, OrderStatus
from services.store_service.schemas import (
    OrderCreate,
    OrderResponse,
    OrderStatusUpdate,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

router = APIRouter(prefix="/api/orders", tags=["orders"])

VALID_STATUSES = [s.value for s in OrderStatus]


async def _ownership_criteria(db: AsyncSession, current_user: AuthUser) -> list:
    """Filters restricting a query to the caller's orders, empty for admins."""
    role = await get_caller_role(db, current_user.user_id)
    if is_allowed(role, Action.VIEW_ALL_ORDERS):
        return []
    return [Order.user_id == current_user.user_id]


async def _get_visible_order(
    db: AsyncSession, order_id: uuid.UUID, current_user: AuthUser
) -> Order:
    criteria = await _ownership_criteria(db, current_user)
    return await get_or_404(
        db, Order, Order.id == order_id, *criteria, message="Order not found"
    )


@router.get("", response_model=list[OrderResponse])
async def list_orders(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """List the caller's orders (all orders for admins), newest first."""
    criteria = await _ownership_criteria(db, current_user)
    query = select(Order).where(*criteria).order_by(Order.created_at.desc())
    orders = await fetch_all(db, query)
    return success_response([OrderResponse.model_validate(o) for o in orders])


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: OrderCreate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Place an order for the caller. The line items are kept on the order as
    submitted and also written as order item rows. Stock is not reserved.
    """
    order = Order(
        id=uuid.uuid4(),
        user_id=current_user.user_id,
        items=[item.model_dump(mode="json", by_alias=True) for item in payload.items],
        shipping_address=payload.shipping_address.model_dump(mode="json", by_alias=True),
        payment_method=payload.payment_method,
        status=OrderStatus.PENDING,
    )

    async with atomic(db):
        db.add(order)
        await db.flush()
        for item in payload.items:
            db.add(
                OrderItem(
                    order_id=order.id,
                    product_id=item.product_id,
                    variant_id=item.variant_id,
                    quantity=item.quantity,
                )
            )

    await db.refresh(order)
    logger.info("Order %s placed by %s", order.id, current_user.user_id)
    return success_response(
        OrderResponse.model_validate(order), status_code=status.HTTP_201_CREATED
    )


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    order = await _get_visible_order(db, order_id, current_user)
    return success_response(OrderResponse.model_validate(order))


@router.delete("/{order_id}")
async def delete_order(
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Delete an order and its order items in one transaction."""
    order = await _get_visible_order(db, order_id, current_user)
    await delete_with_children(db, order, (OrderItem.order_id,))
    logger.info("Order %s deleted by %s", order_id, current_user.user_id)
    return success_response({"message": "Order deleted successfully"})


@router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: uuid.UUID,
    payload: OrderStatusUpdate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    if not payload.status:
        raise BadRequestError("Status is required")

    if payload.status not in VALID_STATUSES:
        raise BadRequestError(
            f"Invalid status. Must be one of: {', '.join(VALID_STATUSES)}"
        )

    order = await get_or_404(db, Order, Order.id == order_id, message="Order not found")
    order = await update_row(db, order, {"status": OrderStatus(payload.status)})
    logger.info(
        "Order %s moved to %s by %s", order_id, payload.status, current_user.user_id
    )
    return success_response(OrderResponse.model_validate(order))
