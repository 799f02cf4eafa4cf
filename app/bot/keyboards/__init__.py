# app/bot/keyboards/__init__.py
"""Инициализация клавиатур."""

from .operator import order_notification_keyboard

__all__ = ["order_notification_keyboard"]
