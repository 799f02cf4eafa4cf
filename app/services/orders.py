# app/services/orders.py
"""
Сервис заказов.

Бизнес-логика для работы с заказами:
- Создание заказа с товарами (checkout)
- Смена статуса (админка) + письмо клиенту
- Тип оплаты курьеру для COD
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import NotFoundError, PersistenceError, ValidationError, db_error_text
from app.schemas import CheckoutItem, OrderData
from app.services.shipping import calculate_shipping
from config.settings import Settings
from infrastructure.database.models import (
    ADMIN_ORDER_STATUSES,
    Order,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    ShippingPaymentType,
)
from infrastructure.database.repositories import OrderItemRepository, OrderRepository
from infrastructure.mailer import Mailer, build_order_confirmation_email, build_order_status_email

import structlog

logger = structlog.get_logger()


@dataclass
class OrderResult:
    """Что возвращает create_order_with_items()."""
    order_id: str
    subtotal: Decimal
    shipping_fee: Decimal
    total_price: Decimal
    order: Order
    items: List[dict]


def initial_status(payment_method: PaymentMethod) -> OrderStatus:
    """Карта через шлюз → ждём оплату, остальное → new."""
    if payment_method == PaymentMethod.IYZICO:
        return OrderStatus.PENDING_PAYMENT
    return OrderStatus.NEW


def initial_payment_status(payment_method: PaymentMethod) -> Optional[PaymentStatus]:
    """COD → деньги возьмёт курьер. Для остальных статус поставит callback оплаты."""
    if payment_method == PaymentMethod.KAPIDA:
        return PaymentStatus.AWAITING_PAYMENT
    return None


def initial_shipping_payment_type(payment_method: PaymentMethod) -> Optional[ShippingPaymentType]:
    """COD сейчас только картой: наличные курьеру не принимаем."""
    if payment_method == PaymentMethod.KAPIDA:
        return ShippingPaymentType.CARD
    return None


class OrderService:
    """Сервис для работы с заказами."""

    # ==========================================
    # СОЗДАТЬ ЗАКАЗ С ТОВАРАМИ
    # ==========================================

    @staticmethod
    async def create_order_with_items(
        session: AsyncSession,
        order_data: OrderData,
        items: Sequence[CheckoutItem]
    ) -> OrderResult:
        """
        Создать заказ и его товары.

        Логика:
        1. Пустой список товаров → ValidationError (ничего не пишем)
        2. Считаем line_total, subtotal, доставку и total на сервере
        3. Статус / статус оплаты / тип оплаты курьеру - от способа оплаты
        4. Пишем заказ (commit)
        5. Пишем товары одним пакетом (commit)
        6. Если товары не записались - удаляем заказ и кидаем PersistenceError

        Заказ и товары - два отдельных commit. Если удаление в шаге 6
        тоже упало, в БД остаётся заказ без товаров: это видно в логах
        (order_cleanup_failed) и чинится руками.
        """
        if not items:
            raise ValidationError("Sipariş en az bir ürün içermelidir.")

        # ========== СЧИТАЕМ СУММЫ ==========
        rows = []
        for item in items:
            unit_price = Decimal(item.unit_price)
            rows.append({
                "product_id": item.product_id,
                "product_name": item.product_name,
                "unit_price": unit_price,
                "quantity": item.quantity,
                "line_total": unit_price * item.quantity,
            })

        subtotal = sum((row["line_total"] for row in rows), Decimal("0"))
        shipping_fee = calculate_shipping(subtotal)
        total_price = subtotal + shipping_fee

        payment_method = PaymentMethod(order_data.payment_method)
        status = initial_status(payment_method)
        payment_status = initial_payment_status(payment_method)
        shipping_payment_type = initial_shipping_payment_type(payment_method)

        order_repo = OrderRepository(session)
        item_repo = OrderItemRepository(session)

        # ========== ШАГ 1: ЗАКАЗ ==========
        try:
            order = await order_repo.create(
                customer_name=order_data.customer_name,
                phone=order_data.phone,
                email=order_data.email or None,
                address=order_data.address,
                city=order_data.city,
                district=order_data.district,
                note=order_data.note or None,
                payment_method=payment_method.value,
                status=status.value,
                payment_status=payment_status.value if payment_status else None,
                shipping_payment_type=shipping_payment_type.value if shipping_payment_type else None,
                subtotal=subtotal,
                shipping_fee=shipping_fee,
                total_price=total_price,
            )
        except Exception as e:
            await session.rollback()
            logger.error("order_insert_failed", error=str(e), error_type=type(e).__name__)
            raise PersistenceError(f"Sipariş kaydedilirken hata oluştu: {db_error_text(e)}") from e

        if not order.id:
            logger.error("order_insert_returned_no_id")
            raise PersistenceError("Sipariş kaydedilirken hata oluştu: Sipariş ID alınamadı")

        order_id = order.id

        # ========== ШАГ 2: ТОВАРЫ ==========
        try:
            await item_repo.create_many(order_id, rows)
        except Exception as e:
            await session.rollback()
            logger.error(
                "order_items_insert_failed",
                order_id=order_id,
                error=str(e),
                error_type=type(e).__name__
            )
            await OrderService._delete_orphan_order(order_repo, order_id)
            raise PersistenceError(f"Sipariş ürünleri kaydedilirken hata oluştu: {db_error_text(e)}") from e

        logger.info(
            "order_created",
            order_id=order_id,
            payment_method=payment_method.value,
            subtotal=str(subtotal),
            shipping_fee=str(shipping_fee),
            total_price=str(total_price),
            items_count=len(rows)
        )

        return OrderResult(
            order_id=order_id,
            subtotal=subtotal,
            shipping_fee=shipping_fee,
            total_price=total_price,
            order=order,
            items=rows,
        )

    @staticmethod
    async def _delete_orphan_order(order_repo: OrderRepository, order_id: str):
        """Откат: удалить заказ без товаров. Ошибку только логируем."""
        try:
            await order_repo.delete(order_id)
            logger.info("order_cleanup_done", order_id=order_id)
        except Exception as e:
            await order_repo.session.rollback()
            logger.error(
                "order_cleanup_failed",
                order_id=order_id,
                error=str(e),
                error_type=type(e).__name__
            )

    # ==========================================
    # ПОЛУЧИТЬ ЗАКАЗ
    # ==========================================

    @staticmethod
    async def get_order(session: AsyncSession, order_id: str, with_items: bool = False) -> Order:
        """Получить заказ по ID или кинуть NotFoundError."""
        repo = OrderRepository(session)

        if with_items:
            order = await repo.get_by_id_with_items(order_id)
        else:
            order = await repo.get_by_id(order_id)

        if not order:
            logger.warning("order_not_found", order_id=order_id)
            raise NotFoundError("Sipariş bulunamadı")

        return order

    # ==========================================
    # ОБНОВИТЬ СТАТУС ЗАКАЗА
    # ==========================================

    @staticmethod
    async def update_order_status(
        session: AsyncSession,
        mailer: Mailer,
        settings: Settings,
        order_id: str,
        status: str
    ) -> Order:
        """
        Сменить статус заказа из админки.

        1. Статус не из списка → ValidationError (в БД не ходим)
        2. Заказа нет → NotFoundError
        3. Обновляем статус
        4. Есть email → письмо клиенту. Письмо не ушло - только лог,
           статус всё равно обновлён.
        """
        allowed = {s.value for s in ADMIN_ORDER_STATUSES}
        if not status or status not in allowed:
            raise ValidationError(f"Geçersiz status değeri: {status}")

        order = await OrderService.get_order(session, order_id)

        updated = await OrderRepository(session).update_fields(order_id, status=status)
        if updated is None:
            raise NotFoundError("Sipariş bulunamadı")

        logger.info("order_status_updated", order_id=order_id, status=status)

        if order.email:
            await send_status_email(mailer, settings, order.email, order_id, order.customer_name, status)
        else:
            logger.info("status_mail_skipped", order_id=order_id, reason="no_email")

        return updated

    # ==========================================
    # ТИП ОПЛАТЫ КУРЬЕРУ (COD)
    # ==========================================

    @staticmethod
    async def set_shipping_payment_type(
        session: AsyncSession,
        order_id: str,
        shipping_payment_type: str
    ) -> Order:
        """Админ вручную меняет cash/card для COD заказа."""
        allowed = {t.value for t in ShippingPaymentType}
        if shipping_payment_type not in allowed:
            raise ValidationError('shipping_payment_type değeri "cash" veya "card" olmalıdır')

        await OrderService.get_order(session, order_id)

        return await OrderRepository(session).update_fields(
            order_id,
            shipping_payment_type=shipping_payment_type
        )


# ==========================================
# ПИСЬМА (best-effort)
# ==========================================

async def send_status_email(
    mailer: Mailer,
    settings: Settings,
    to: str,
    order_id: str,
    customer_name: str,
    status: str
):
    """Письмо о смене статуса. Никогда не кидает исключений."""
    try:
        mail = build_order_status_email(order_id, customer_name, status)
        await mailer.send([to], bcc=settings.admin_notify_emails, **mail)
        logger.info("status_mail_sent", order_id=order_id, status=status)
    except Exception as e:
        logger.error(
            "status_mail_failed",
            order_id=order_id,
            error=str(e),
            error_type=type(e).__name__
        )


async def send_confirmation_email(mailer: Mailer, settings: Settings, result: OrderResult):
    """Письмо "заказ принят". Никогда не кидает исключений."""
    order = result.order
    if not order.email:
        return

    try:
        mail = build_order_confirmation_email(
            order_id=result.order_id,
            customer_name=order.customer_name,
            items=result.items,
            subtotal=result.subtotal,
            shipping_fee=result.shipping_fee,
            total_price=result.total_price,
        )
        await mailer.send([order.email], bcc=settings.admin_notify_emails, **mail)
        logger.info("confirmation_mail_sent", order_id=result.order_id)
    except Exception as e:
        logger.error(
            "confirmation_mail_failed",
            order_id=result.order_id,
            error=str(e),
            error_type=type(e).__name__
        )
