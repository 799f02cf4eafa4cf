# app/services/shipping.py
"""
Доставка: стоимость, бесплатный порог, можно ли отправлять заказ в карго.
"""

import hashlib
from datetime import datetime
from decimal import Decimal
from typing import Union

from infrastructure.database.models import (
    Order,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)

Amount = Union[Decimal, int, float]

BASE_SHIPPING_FEE = Decimal("150.00")
FREE_SHIPPING_THRESHOLD = Decimal("750.00")


def _to_decimal(value: Amount) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() чтобы 0.1 не превратился в 0.1000000000000000055...
    return Decimal(str(value))


def calculate_shipping(subtotal: Amount) -> Decimal:
    """
    Стоимость доставки по сумме корзины.

    Пример:
        calculate_shipping(250)  → Decimal("150.00")
        calculate_shipping(750)  → Decimal("0")
    """
    if _to_decimal(subtotal) >= FREE_SHIPPING_THRESHOLD:
        return Decimal("0")
    return BASE_SHIPPING_FEE


def remaining_for_free_shipping(subtotal: Amount) -> Decimal:
    """Сколько ещё добрать до бесплатной доставки (0 если уже хватает)."""
    remaining = FREE_SHIPPING_THRESHOLD - _to_decimal(subtotal)
    return max(Decimal("0"), remaining)


def can_create_shipment(order: Order) -> bool:
    """
    Можно ли создать отправку в карго для заказа.

    Правила:
    - отменённый / неоплаченный через шлюз заказ - нельзя
    - нужен полный адрес (address, city, district)
    - отправка ещё не создана
    - онлайн оплата (iyzico, havale) - только после payment_status = paid
    - COD (kapida) - можно сразу
    """
    if order.status in (OrderStatus.CANCELED.value, OrderStatus.PAYMENT_FAILED.value):
        return False

    if not order.address or not order.city or not order.district:
        return False

    if (
        order.shipping_tracking_number
        or order.shipping_label_url
        or order.shipping_status == "created"
    ):
        return False

    is_online = order.payment_method in (PaymentMethod.IYZICO.value, PaymentMethod.HAVALE.value)
    if not is_online:
        return True

    payment_status = order.payment_status
    if not payment_status:
        # Старые заказы: статус оплаты жил в поле status
        if order.status == OrderStatus.PAID.value:
            payment_status = PaymentStatus.PAID.value
        elif order.status == OrderStatus.PENDING_PAYMENT.value:
            payment_status = PaymentStatus.AWAITING_PAYMENT.value

    return payment_status == PaymentStatus.PAID.value


def generate_cargo_key(order_id: str, created_at: datetime) -> str:
    """
    Ключ отправки для карго (не длиннее 20 символов).

    Один и тот же заказ всегда даёт один и тот же ключ,
    поэтому повторный запрос не создаст вторую отправку.

    Пример:
        generate_cargo_key("9f1c...", datetime(2026, 3, 5))
        → "LT260305" + 12 символов sha1
    """
    date_prefix = created_at.strftime("%y%m%d")
    digest = hashlib.sha1(order_id.encode("utf-8")).hexdigest()[:12].upper()
    return f"LT{date_prefix}{digest}"
