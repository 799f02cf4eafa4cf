from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from infrastructure.database.models import Order, OrderItem
from infrastructure.database.repositories import OrderItemRepository


def _payload(**values):
    payload = {
        "customer_name": "Ayşe Yılmaz",
        "phone": "0532 123 45 67",
        "email": "ayse@example.com",
        "address": "Atatürk Cad. No: 5",
        "city": "İzmir",
        "district": "Karşıyaka",
        "note": "Kapıya bırakın",
        "payment_method": "kapida",
        "items": [
            {"product_id": "p1", "product_name": "Domates Salçası", "unit_price": 100, "quantity": 2},
            {"product_id": "p2", "product_name": "Nar Ekşisi", "unit_price": "50.00", "quantity": 1},
        ],
    }
    payload.update(values)
    return payload


async def test_create_order(client, db, mailer):
    response = await client.post("/api/orders", json=_payload())

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["subtotal"] == 250.0
    assert body["shippingFee"] == 150.0
    assert body["totalPrice"] == 400.0
    assert body["message"]

    async with db() as s:
        order = (await s.execute(select(Order).where(Order.id == body["orderId"]))).scalar_one()
        items = (await s.execute(select(OrderItem).where(OrderItem.order_id == order.id))).scalars().all()

    assert order.status == "new"
    assert order.payment_status == "awaiting_payment"
    assert order.shipping_payment_type == "card"
    assert len(items) == 2

    # Письмо ушло в фоне
    assert len(mailer.sent) == 1
    assert mailer.sent[0]["to"] == ["ayse@example.com"]


async def test_client_total_is_ignored(client):
    response = await client.post("/api/orders", json=_payload(total_price=1, subtotal=1))

    assert response.status_code == 201
    assert response.json()["totalPrice"] == 400.0


async def test_free_shipping(client):
    items = [{"product_id": "p1", "product_name": "Bal", "unit_price": 750, "quantity": 1}]

    response = await client.post("/api/orders", json=_payload(items=items))

    assert response.json()["shippingFee"] == 0.0
    assert response.json()["totalPrice"] == 750.0


async def test_order_without_email_sends_nothing(client, mailer):
    response = await client.post("/api/orders", json=_payload(email=""))

    assert response.status_code == 201
    assert mailer.sent == []


async def test_mail_failure_does_not_fail_checkout(client, mailer):
    mailer.fail = True

    response = await client.post("/api/orders", json=_payload())

    assert response.status_code == 201


async def test_all_violations_are_reported(client, db):
    payload = _payload(customer_name="", payment_method="cash", items=[
        {"product_id": "p1", "product_name": "Bal", "unit_price": -1, "quantity": 0},
    ])

    response = await client.post("/api/orders", json=payload)

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    fields = {detail["field"] for detail in body["details"]}
    assert {"customer_name", "payment_method", "items.0.unit_price", "items.0.quantity"} <= fields

    async with db() as s:
        assert (await s.execute(select(Order))).first() is None


async def test_empty_items(client):
    response = await client.post("/api/orders", json=_payload(items=[]))

    assert response.status_code == 400
    assert "items" in {detail["field"] for detail in response.json()["details"]}


async def test_items_failure_returns_500_and_leaves_no_order(client, db, monkeypatch):
    async def broken_create_many(self, order_id, items):
        raise RuntimeError("disk full")

    monkeypatch.setattr(OrderItemRepository, "create_many", broken_create_many)

    response = await client.post("/api/orders", json=_payload())

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "error": "Sipariş ürünleri kaydedilirken hata oluştu: disk full",
    }
    async with db() as s:
        assert (await s.execute(select(Order))).first() is None


async def test_db_error_does_not_leak_sql(client, monkeypatch):
    async def broken_create_many(self, order_id, items):
        raise OperationalError(
            "INSERT INTO order_items (order_id, product_name) VALUES (?, ?)",
            (order_id, "Domates Salçası"),
            Exception("no such table: order_items"),
        )

    monkeypatch.setattr(OrderItemRepository, "create_many", broken_create_many)

    response = await client.post("/api/orders", json=_payload())

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Sipariş ürünleri kaydedilirken hata oluştu: no such table: order_items"
    assert "[SQL:" not in body["error"]
    assert "INSERT INTO" not in body["error"]
    assert "Domates" not in body["error"]


async def test_totals_are_stored_as_decimal(client, db):
    response = await client.post("/api/orders", json=_payload())

    async with db() as s:
        order = (await s.execute(select(Order).where(Order.id == response.json()["orderId"]))).scalar_one()

    assert order.subtotal == Decimal("250.00")
    assert order.total_price == Decimal("400.00")


async def test_health(client):
    response = await client.get("/health")

    assert response.json() == {"status": "ok", "service": "lezzettetek_api"}
