# app/bot/keyboards/operator.py
"""
Клавиатуры для оператора.
"""

from typing import Optional

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup


def order_notification_keyboard(order_id: str, site_url: str) -> Optional[InlineKeyboardMarkup]:
    """
    Клавиатура при уведомлении оператора о новом заказе.

    Содержит одну кнопку "Открыть в админке".
    Без SITE_URL ссылку не построить → клавиатуры нет.
    """
    if not site_url:
        return None

    return InlineKeyboardMarkup(inline_keyboard=[
        [
            InlineKeyboardButton(
                text="🗂 Admin panelinde aç",
                url=f"{site_url.rstrip('/')}/admin/orders/{order_id}"
            )
        ]
    ])
