from datetime import datetime
from decimal import Decimal

import pytest

from app.services.shipping import (
    BASE_SHIPPING_FEE,
    FREE_SHIPPING_THRESHOLD,
    calculate_shipping,
    can_create_shipment,
    generate_cargo_key,
    remaining_for_free_shipping,
)
from infrastructure.database.models import Order


@pytest.mark.parametrize("subtotal, expected", [
    (0, Decimal("150")),
    (250, Decimal("150")),
    (Decimal("749.99"), Decimal("150")),
    (750, Decimal("0")),
    (750.0, Decimal("0")),
    (1200, Decimal("0")),
])
def test_calculate_shipping(subtotal, expected):
    assert calculate_shipping(subtotal) == expected


@pytest.mark.parametrize("subtotal, expected", [
    (0, Decimal("750")),
    (250, Decimal("500")),
    (Decimal("749.50"), Decimal("0.50")),
    (750, Decimal("0")),
    (900, Decimal("0")),
])
def test_remaining_for_free_shipping(subtotal, expected):
    assert remaining_for_free_shipping(subtotal) == expected


def test_remaining_is_zero_exactly_when_shipping_is_free():
    for cents in range(0, 100001, 2500):
        subtotal = Decimal(cents) / 100
        free = calculate_shipping(subtotal) == 0
        assert (remaining_for_free_shipping(subtotal) == 0) == free


def test_constants():
    assert BASE_SHIPPING_FEE == Decimal("150")
    assert FREE_SHIPPING_THRESHOLD == Decimal("750")


def test_float_input_does_not_leak_binary_noise():
    assert remaining_for_free_shipping(0.1) == Decimal("749.9")


def _order(**values):
    values.setdefault("status", "new")
    values.setdefault("payment_method", "kapida")
    values.setdefault("payment_status", "awaiting_payment")
    values.setdefault("address", "Atatürk Cad. No: 5")
    values.setdefault("city", "İzmir")
    values.setdefault("district", "Karşıyaka")
    return Order(**values)


class TestCanCreateShipment:

    def test_cod_order_can_ship_right_away(self):
        assert can_create_shipment(_order()) is True

    @pytest.mark.parametrize("status", ["canceled", "payment_failed"])
    def test_dead_orders_cannot_ship(self, status):
        assert can_create_shipment(_order(status=status)) is False

    @pytest.mark.parametrize("field", ["address", "city", "district"])
    def test_address_is_required(self, field):
        assert can_create_shipment(_order(**{field: ""})) is False

    @pytest.mark.parametrize("values", [
        {"shipping_tracking_number": "TRK1"},
        {"shipping_label_url": "https://carrier.example.com/l.pdf"},
        {"shipping_status": "created"},
    ])
    def test_existing_shipment_blocks(self, values):
        assert can_create_shipment(_order(**values)) is False

    @pytest.mark.parametrize("method", ["havale", "iyzico"])
    def test_online_payment_needs_paid(self, method):
        assert can_create_shipment(_order(payment_method=method, payment_status=None)) is False
        assert can_create_shipment(_order(payment_method=method, payment_status="paid")) is True

    def test_online_payment_falls_back_to_order_status(self):
        assert can_create_shipment(_order(payment_method="iyzico", payment_status=None, status="paid")) is True
        assert can_create_shipment(
            _order(payment_method="iyzico", payment_status=None, status="pending_payment")
        ) is False


def test_generate_cargo_key_is_stable_and_short():
    created_at = datetime(2026, 3, 5, 12, 30)

    key = generate_cargo_key("order-1", created_at)

    assert key == generate_cargo_key("order-1", created_at)
    assert key.startswith("LT260305")
    assert len(key) == 20
    assert key[8:] == key[8:].upper()
    assert key != generate_cargo_key("order-2", created_at)
