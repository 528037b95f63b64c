"""Integration tests for orders: placement, ownership scoping and status."""

import uuid

import pytest

from services.store_service.models import Order, OrderItem, OrderStatus
from tests.fakes import CUSTOMER_ID, OTHER_CUSTOMER_ID
from tests.factories import OrderFactory, count_rows, load, minutes_ago, persist


def _order_payload(**overrides) -> dict:
    payload = {
        "items": [
            {"productId": str(uuid.uuid4()), "variantId": str(uuid.uuid4()), "quantity": 2},
            {"productId": str(uuid.uuid4()), "quantity": 1},
        ],
        "shippingAddress": {
            "name": "Ada Lovelace",
            "addressLine1": "1 Main St",
            "city": "Lagos",
            "state": "LA",
            "postalCode": "100001",
            "country": "NG",
        },
        "paymentMethod": "card",
    }
    payload.update(overrides)
    return payload


# ---------------------------------------------------------------------------
# Placement
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_create_order(client, database, customer_headers):
    payload = _order_payload()

    response = await client.post("/api/orders", json=payload, headers=customer_headers)

    assert response.status_code == 201, response.text
    body = response.json()
    assert body["user_id"] == CUSTOMER_ID
    assert body["status"] == "pending"
    assert body["payment_method"] == "card"
    assert body["shipping_address"]["postalCode"] == "100001"
    assert body["items"][0]["productId"] == payload["items"][0]["productId"]
    assert body["items"][0]["quantity"] == 2

    order_id = uuid.UUID(body["id"])
    assert await count_rows(database, OrderItem, OrderItem.order_id == order_id) == 2


@pytest.mark.asyncio
@pytest.mark.integration
async def test_create_order_requires_session(client):
    response = await client.post("/api/orders", json=_order_payload())

    assert response.status_code == 401


@pytest.mark.asyncio
@pytest.mark.integration
async def test_create_order_rejects_zero_quantity(client, database, customer_headers):
    payload = _order_payload(items=[{"productId": str(uuid.uuid4()), "quantity": 0}])

    response = await client.post("/api/orders", json=payload, headers=customer_headers)

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Validation failed"
    assert body["details"][0]["field"] == "items.0.quantity"
    assert await count_rows(database, Order) == 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_create_order_rejects_bad_product_id(client, customer_headers):
    payload = _order_payload(items=[{"productId": "abc", "quantity": 1}])

    response = await client.post("/api/orders", json=payload, headers=customer_headers)

    assert response.status_code == 400


# ---------------------------------------------------------------------------
# Ownership scoping
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_customer_lists_only_own_orders(client, database, customer_headers):
    await persist(
        database,
        OrderFactory.create(CUSTOMER_ID, payment_method="older", created_at=minutes_ago(30)),
        OrderFactory.create(CUSTOMER_ID, payment_method="newer", created_at=minutes_ago(5)),
        OrderFactory.create(OTHER_CUSTOMER_ID),
    )

    response = await client.get("/api/orders", headers=customer_headers)

    assert response.status_code == 200
    orders = response.json()
    assert [o["payment_method"] for o in orders] == ["newer", "older"]
    assert {o["user_id"] for o in orders} == {CUSTOMER_ID}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_lists_all_orders(client, database, admin_headers):
    await persist(
        database,
        OrderFactory.create(CUSTOMER_ID),
        OrderFactory.create(OTHER_CUSTOMER_ID),
    )

    response = await client.get("/api/orders", headers=admin_headers)

    assert response.status_code == 200
    assert {o["user_id"] for o in response.json()} == {CUSTOMER_ID, OTHER_CUSTOMER_ID}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_foreign_order_is_not_found(client, database, customer_headers):
    foreign = OrderFactory.create(OTHER_CUSTOMER_ID)
    await persist(database, foreign)

    fetched = await client.get(f"/api/orders/{foreign.id}", headers=customer_headers)
    deleted = await client.delete(f"/api/orders/{foreign.id}", headers=customer_headers)

    assert fetched.status_code == 404
    assert fetched.json() == {"error": "Order not found"}
    assert deleted.status_code == 404
    assert await load(database, Order, Order.id == foreign.id) is not None


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_reads_any_order(client, database, admin_headers):
    order = OrderFactory.create(CUSTOMER_ID)
    await persist(database, order)

    response = await client.get(f"/api/orders/{order.id}", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["id"] == str(order.id)


@pytest.mark.asyncio
@pytest.mark.integration
async def test_delete_own_order_removes_items(client, database, customer_headers):
    created = await client.post(
        "/api/orders", json=_order_payload(), headers=customer_headers
    )
    order_id = uuid.UUID(created.json()["id"])

    response = await client.delete(f"/api/orders/{order_id}", headers=customer_headers)

    assert response.status_code == 200
    assert await count_rows(database, OrderItem, OrderItem.order_id == order_id) == 0
    assert await count_rows(database, Order, Order.id == order_id) == 0


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_update_status(client, database, customer_headers):
    order = OrderFactory.create(CUSTOMER_ID)
    await persist(database, order)

    response = await client.put(
        f"/api/orders/{order.id}/status", json={"status": "shipped"}, headers=customer_headers
    )

    assert response.status_code == 200
    assert response.json()["status"] == "shipped"


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize("status_value", ["lost", "SHIPPED", "refunded"])
async def test_invalid_status_is_rejected_and_unchanged(
    client, database, customer_headers, status_value
):
    order = OrderFactory.create(CUSTOMER_ID, status=OrderStatus.PROCESSING)
    await persist(database, order)

    response = await client.put(
        f"/api/orders/{order.id}/status", json={"status": status_value}, headers=customer_headers
    )

    assert response.status_code == 400
    assert response.json()["error"].startswith("Invalid status. Must be one of: pending")
    stored = await load(database, Order, Order.id == order.id)
    assert stored.status is OrderStatus.PROCESSING


@pytest.mark.asyncio
@pytest.mark.integration
async def test_status_is_required(client, database, customer_headers):
    order = OrderFactory.create(CUSTOMER_ID)
    await persist(database, order)

    response = await client.put(
        f"/api/orders/{order.id}/status", json={}, headers=customer_headers
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Status is required"}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_status_of_unknown_order_is_404(client, customer_headers):
    response = await client.put(
        f"/api/orders/{uuid.uuid4()}/status", json={"status": "shipped"}, headers=customer_headers
    )

    assert response.status_code == 404


@pytest.mark.asyncio
@pytest.mark.integration
async def test_create_order_accepts_integral_float_quantity(client, customer_headers):
    payload = _order_payload(items=[{"productId": str(uuid.uuid4()), "quantity": 2.0}])

    response = await client.post("/api/orders", json=payload, headers=customer_headers)

    assert response.status_code == 201, response.text
    assert response.json()["items"][0]["quantity"] == 2
