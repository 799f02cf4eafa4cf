# app/api/dependencies.py
"""
FastAPI dependencies.

Все внешние клиенты (БД, почта, бот, карго) создаются в create_app()
и лежат в app.state. Обработчики получают их через Depends -
в тестах достаточно подменить app.state.mailer / app.state.carrier.
"""

import hmac
from typing import Optional

from aiogram import Bot
from fastapi import Request

from app.errors import AuthenticationError, ConfigurationError
from app.services.auth import ADMIN_SESSION_COOKIE, USER_SESSION_COOKIE, decode_session_token
from config.settings import Settings
from infrastructure.carrier import CarrierClient
from infrastructure.database import get_db_session
from infrastructure.mailer import Mailer

import structlog

logger = structlog.get_logger()

__all__ = [
    "get_db_session",
    "get_settings",
    "get_mailer",
    "get_bot",
    "get_carrier",
    "require_admin_session",
    "require_user_id",
    "require_internal_token",
]


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer


def get_bot(request: Request) -> Optional[Bot]:
    return request.app.state.bot


def get_carrier(request: Request) -> CarrierClient:
    return request.app.state.carrier


def require_admin_session(request: Request):
    """
    /api/admin/*: нужна cookie admin_session.

    Как и страничный gate (AdminSessionMiddleware) - проверяем только
    наличие cookie, подпись проверяется при логине.
    """
    if ADMIN_SESSION_COOKIE not in request.cookies:
        raise AuthenticationError("Oturum bulunamadı")


def require_user_id(request: Request) -> str:
    """Покупатель из cookie user_session (подпись проверяем). Возвращает id профиля."""
    token = request.cookies.get(USER_SESSION_COOKIE)
    if not token:
        raise AuthenticationError("Giriş yapmanız gerekiyor.")

    payload = decode_session_token(token, request.app.state.settings)
    return payload["sub"]


def require_internal_token(request: Request):
    """
    Внутренние вызовы: Authorization: Bearer <INTERNAL_API_TOKEN>.
    """
    expected = request.app.state.settings.internal_api_token
    if not expected:
        logger.error("internal_token_not_configured")
        raise ConfigurationError("Sunucu yapılandırması eksik (INTERNAL_API_TOKEN)")

    header = request.headers.get("Authorization", "")
    token = header[7:] if header.startswith("Bearer ") else ""

    # TIMING-SAFE сравнение
    if not token or not hmac.compare_digest(token, expected):
        logger.warning(
            "invalid_internal_token",
            remote_ip=request.client.host if request.client else "unknown"
        )
        raise AuthenticationError("Yetkisiz istek")
