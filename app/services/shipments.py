# app/services/shipments.py
"""
Отправки в карго: создание, трек-номер, этикетка.
"""

import re
from datetime import datetime, timezone

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import CarrierError, NotFoundError, ValidationError
from app.services.orders import OrderService
from app.services.shipping import can_create_shipment, generate_cargo_key
from infrastructure.carrier import CarrierClient, ShipmentRequestData
from infrastructure.database.models import OrderStatus
from infrastructure.database.repositories import OrderRepository

import structlog

logger = structlog.get_logger()

# Настоящий трек-номер перевозчика - только цифры (cargo key "LT..." не подходит)
CARRIER_TRACKING_RE = re.compile(r"^\d{8,20}$")


class ShipmentService:

    @staticmethod
    async def create_shipment(session: AsyncSession, carrier: CarrierClient, order_id: str) -> dict:
        """
        Создать отправку.

        Логика:
        1. Заказа нет → NotFoundError
        2. Трек-номер уже есть → возвращаем его (reused=True), карго не трогаем
        3. can_create_shipment() == False → ValidationError
        4. Вызываем карго. Ошибка → сохраняем её в заказе и кидаем CarrierError
        5. Сохраняем трек-номер, этикетку, статус "shipped"
        """
        order = await OrderService.get_order(session, order_id)

        if order.shipping_tracking_number:
            return {
                "orderId": order.id,
                "trackingNumber": order.shipping_tracking_number,
                "labelUrl": order.shipping_label_url,
                "reused": True,
            }

        if not can_create_shipment(order):
            raise ValidationError(
                f"Bu sipariş için kargo oluşturulamaz. Mevcut durum: {order.status}"
            )

        carrier.ensure_configured()

        created_at = order.created_at or datetime.now(timezone.utc)
        cargo_key = generate_cargo_key(order.id, created_at)
        request_data = ShipmentRequestData(
            cargo_key=cargo_key,
            invoice_key=cargo_key,
            receiver_name=order.customer_name,
            receiver_address=order.address,
            city=order.city,
            district=order.district,
            phone=order.phone,
        )

        repo = OrderRepository(session)

        try:
            result = await run_in_threadpool(carrier.create_shipment, request_data)
        except CarrierError as e:
            await repo.update_fields(
                order_id,
                shipping_carrier=carrier.name,
                shipping_status="error",
                shipping_error_message=e.message,
            )
            raise

        await repo.update_fields(
            order_id,
            status=OrderStatus.SHIPPED.value,
            shipping_carrier=carrier.name,
            shipping_tracking_number=result.tracking_number,
            shipping_reference_number=result.reference_number or cargo_key,
            shipping_label_url=result.label_url,
            shipping_status="created",
            shipping_error_message=None,
            shipped_at=datetime.now(timezone.utc),
        )

        logger.info(
            "shipment_created",
            order_id=order_id,
            cargo_key=cargo_key,
            tracking_number=result.tracking_number,
            reused=result.reused
        )

        return {
            "orderId": order_id,
            "trackingNumber": result.tracking_number,
            "labelUrl": result.label_url,
            "reused": result.reused,
        }

    # ==========================================
    # ТРЕК-НОМЕР И ЭТИКЕТКА
    # ==========================================

    @staticmethod
    async def refresh_tracking(session: AsyncSession, carrier: CarrierClient, order_id: str) -> dict:
        """
        Обновить трек-номер из карго (отправку НЕ создаёт).

        1. Заказа нет → NotFoundError
        2. Нет shipping_reference_number → ValidationError (сначала создать отправку)
        3. Уже есть числовой трек-номер → возвращаем его
        4. Спрашиваем карго по reference. Номера ещё нет → NotFoundError
        5. Сохраняем трек-номер (и этикетку, если пришла)
        """
        order = await OrderService.get_order(session, order_id)

        if not order.shipping_reference_number:
            raise ValidationError(
                "Bu sipariş için referans numarası bulunamadı. Önce kargo oluşturulmalı."
            )

        existing = order.shipping_tracking_number
        if existing and CARRIER_TRACKING_RE.match(existing):
            return {
                "orderId": order.id,
                "trackingNumber": existing,
                "message": "Takip numarası zaten mevcut",
            }

        carrier.ensure_configured()
        status = await run_in_threadpool(carrier.query_shipment, order.shipping_reference_number)

        if not status.tracking_number:
            logger.info("tracking_not_ready", order_id=order_id)
            raise NotFoundError(
                "Kargo kaydı oluştu. Takip numarası şube kabulünden sonra üretilecektir. "
                "Lütfen daha sonra tekrar deneyin."
            )

        values = {"shipping_tracking_number": status.tracking_number}
        if status.label_url:
            values["shipping_label_url"] = status.label_url

        await OrderRepository(session).update_fields(order_id, **values)

        logger.info("tracking_refreshed", order_id=order_id, had_label=bool(status.label_url))

        return {
            "orderId": order.id,
            "trackingNumber": status.tracking_number,
            "message": "Takip numarası başarıyla güncellendi",
        }

    @staticmethod
    async def get_label(session: AsyncSession, carrier: CarrierClient, order_id: str) -> dict:
        """
        Ссылка на этикетку.

        Сохранённая ссылка отдаётся сразу, иначе спрашиваем карго
        по трек-номеру (или по reference, пока трек-номера нет).
        """
        order = await OrderService.get_order(session, order_id)

        if order.shipping_label_url:
            return {"orderId": order.id, "labelUrl": order.shipping_label_url}

        key = order.shipping_tracking_number or order.shipping_reference_number
        if not key:
            raise ValidationError("Kargo kaydı bulunamadı. Lütfen önce kargo oluşturun.")

        carrier.ensure_configured()
        label_url = await run_in_threadpool(carrier.get_label, key)

        await OrderRepository(session).update_fields(order_id, shipping_label_url=label_url)

        return {"orderId": order.id, "labelUrl": label_url}
