# app/api/routes/orders.py
"""
Checkout: POST /api/orders

Когда покупатель нажимает "Siparişi tamamla", фронт отправляет сюда корзину.
"""

from typing import Optional

from aiogram import Bot
from fastapi import APIRouter, BackgroundTasks, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_bot, get_db_session, get_mailer, get_settings
from app.bot.services.notifications import notify_operator_new_order
from app.schemas import CheckoutRequest
from app.services.orders import OrderService, send_confirmation_email
from config.settings import Settings
from infrastructure.mailer import Mailer

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.post("", status_code=201)
async def create_order(
    payload: CheckoutRequest,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    mailer: Mailer = Depends(get_mailer),
    bot: Optional[Bot] = Depends(get_bot),
    settings: Settings = Depends(get_settings),
):
    """
    Создать заказ.

    Логика:
    1. Схема CheckoutRequest уже проверила все поля (иначе 400)
    2. Сервис считает суммы и пишет заказ + товары
    3. В фоне: письмо покупателю и уведомление оператору в Telegram
       (их ошибки только логируются)
    """
    result = await OrderService.create_order_with_items(
        session,
        payload.order_data(),
        payload.items
    )

    background_tasks.add_task(send_confirmation_email, mailer, settings, result)
    background_tasks.add_task(notify_operator_new_order, bot, settings, result.order, result.items)

    return JSONResponse(
        {
            "success": True,
            "orderId": result.order_id,
            "subtotal": float(result.subtotal),
            "shippingFee": float(result.shipping_fee),
            "totalPrice": float(result.total_price),
            "message": "Siparişiniz başarıyla oluşturuldu.",
        },
        status_code=201,
        background=background_tasks
    )
