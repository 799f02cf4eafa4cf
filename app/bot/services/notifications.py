# app/bot/services/notifications.py
"""
Сервис для отправки уведомлений оператору в Telegram.

Бот только пишет оператору о новых заказах - диалогов с клиентами нет.
"""

from html import escape
from typing import List, Optional

from aiogram import Bot

from app.bot.keyboards.operator import order_notification_keyboard
from config.settings import Settings
from infrastructure.database.models import Order, PaymentMethod

import structlog

logger = structlog.get_logger()

PAYMENT_LABELS = {
    PaymentMethod.HAVALE.value: "Havale / EFT",
    PaymentMethod.KAPIDA.value: "Kapıda Ödeme",
    PaymentMethod.IYZICO.value: "Kredi Kartı (iyzico)",
}


def create_bot(settings: Settings) -> Optional[Bot]:
    """
    Создать бота если токен и ID оператора заданы.

    Без них уведомления просто выключены (None).
    """
    if not settings.bot_token or not settings.operator_telegram_id:
        logger.warning("operator_notifications_disabled", reason="bot_token_or_operator_id_missing")
        return None

    return Bot(token=settings.bot_token)


def order_card_text(order: Order, items: List[dict]) -> str:
    """Карточка заказа для оператора (HTML)."""
    lines = "\n".join(
        f"• {escape(item['product_name'])} × {item['quantity']}"
        for item in items
    )
    payment = PAYMENT_LABELS.get(order.payment_method, order.payment_method)

    return (
        f"🔔 <b>Yeni sipariş!</b>\n\n"
        f"ID: <code>{order.id}</code>\n"
        f"👤 {escape(order.customer_name)}\n"
        f"📞 {escape(order.phone)}\n"
        f"📍 {escape(order.address)}, {escape(order.district)} / {escape(order.city)}\n"
        f"💳 {payment}\n\n"
        f"{lines}\n\n"
        f"💰 Toplam: {float(order.total_price):.2f} ₺"
    )


async def notify_operator_new_order(
    bot: Optional[Bot],
    settings: Settings,
    order: Order,
    items: List[dict]
):
    """
    Отправляет оператору уведомление о новом заказе.

    Вызывается в background_tasks, поэтому не блокирует ответ checkout.
    Ошибка только логируется: заказ уже создан, это не критично.
    """
    if bot is None:
        return

    try:
        await bot.send_message(
            chat_id=settings.operator_telegram_id,
            text=order_card_text(order, items),
            parse_mode="HTML",
            reply_markup=order_notification_keyboard(order.id, settings.site_url)
        )

        logger.info("operator_notified", order_id=order.id)

    except Exception as e:
        logger.error(
            "operator_notification_failed",
            order_id=order.id,
            error=str(e),
            error_type=type(e).__name__
        )
