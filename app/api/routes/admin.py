# app/api/routes/admin.py
"""
🛠 ADMIN API (/api/admin/...)

- login / logout (выдача и удаление cookie admin_session)
- смена статуса заказа
- тип оплаты курьеру (COD)
- отправка в карго: создание, трек-номер, этикетка
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import (
    get_carrier,
    get_db_session,
    get_mailer,
    get_settings,
    require_admin_session,
)
from app.schemas import LoginRequest, ShippingPaymentTypeRequest, StatusUpdateRequest
from app.services.auth import (
    ADMIN_SESSION_COOKIE,
    SESSION_MAX_AGE,
    authenticate,
    ensure_admin_access,
    issue_session_token,
)
from app.services.orders import OrderService
from app.services.shipments import ShipmentService
from config.settings import Settings
from infrastructure.carrier import CarrierClient
from infrastructure.mailer import Mailer

import structlog

logger = structlog.get_logger()

router = APIRouter(prefix="/api/admin", tags=["admin"])

# Все маршруты ниже (кроме login/logout) - только с cookie admin_session
protected = APIRouter(dependencies=[Depends(require_admin_session)])


# ==========================================
# LOGIN / LOGOUT
# ==========================================

@router.post("/login")
async def admin_login(
    payload: LoginRequest,
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
):
    """
    Вход в админку.

    1. Проверяем логин/пароль (401)
    2. Роль admin/staff или email из списка админов (403)
    3. Ставим cookie admin_session на 7 дней
    """
    profile = await authenticate(session, payload.identifier, payload.password)
    ensure_admin_access(profile, settings)

    response = JSONResponse({"success": True})
    response.set_cookie(
        ADMIN_SESSION_COOKIE,
        issue_session_token(profile, settings),
        max_age=SESSION_MAX_AGE,
        path="/",
        httponly=True,
        samesite="strict",
        secure=settings.is_production,
    )

    logger.info("admin_logged_in", profile_id=profile.id, role=profile.role)

    return response


@router.post("/logout")
async def admin_logout(settings: Settings = Depends(get_settings)):
    """Удаляем cookie сразу (max_age=0)."""
    response = JSONResponse({"success": True})
    response.set_cookie(
        ADMIN_SESSION_COOKIE,
        "",
        max_age=0,
        path="/",
        httponly=True,
        samesite="strict",
        secure=settings.is_production,
    )
    return response


# ==========================================
# ЗАКАЗЫ
# ==========================================

@protected.patch("/orders/{order_id}/status")
async def update_order_status(
    order_id: str,
    payload: StatusUpdateRequest,
    session: AsyncSession = Depends(get_db_session),
    mailer: Mailer = Depends(get_mailer),
    settings: Settings = Depends(get_settings),
):
    """
    Сменить статус: new / preparing / shipped / completed / canceled.

    400 - неизвестный статус, 404 - нет заказа.
    Письмо клиенту не ушло → всё равно 200.
    """
    order = await OrderService.update_order_status(
        session,
        mailer,
        settings,
        order_id,
        payload.status
    )
    return {"success": True, "data": {"id": order.id, "status": order.status}}


@protected.patch("/orders/{order_id}/shipping-payment-type")
async def update_shipping_payment_type(
    order_id: str,
    payload: ShippingPaymentTypeRequest,
    session: AsyncSession = Depends(get_db_session),
):
    order = await OrderService.set_shipping_payment_type(
        session,
        order_id,
        payload.shipping_payment_type
    )
    return {
        "success": True,
        "data": {"id": order.id, "shipping_payment_type": order.shipping_payment_type},
    }


@protected.post("/orders/{order_id}/shipment")
async def create_order_shipment(
    order_id: str,
    session: AsyncSession = Depends(get_db_session),
    carrier: CarrierClient = Depends(get_carrier),
):
    """Создать отправку в карго из карточки заказа."""
    data = await ShipmentService.create_shipment(session, carrier, order_id)
    return {"success": True, "data": data}


@protected.post("/orders/{order_id}/refresh-tracking")
async def refresh_order_tracking(
    order_id: str,
    session: AsyncSession = Depends(get_db_session),
    carrier: CarrierClient = Depends(get_carrier),
):
    """Подтянуть числовой трек-номер из карго (отправку не создаёт)."""
    data = await ShipmentService.refresh_tracking(session, carrier, order_id)
    return {"success": True, "data": data}


@protected.get("/orders/{order_id}/label")
async def get_order_label(
    order_id: str,
    session: AsyncSession = Depends(get_db_session),
    carrier: CarrierClient = Depends(get_carrier),
):
    data = await ShipmentService.get_label(session, carrier, order_id)
    return {"success": True, "data": data}


router.include_router(protected)
