# app/services/auth.py
"""
🔐 ЛОГИН И СЕССИИ

Проверяем логин/пароль по таблице profiles и выдаём
подписанный JWT, который кладётся в httpOnly cookie.

- admin_session - для /admin (роль admin/staff)
- user_session  - для покупателя (отзывы)
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi.concurrency import run_in_threadpool
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import AuthenticationError, PermissionDenied, ValidationError
from app.services.phone import phone_to_email
from config.settings import Settings
from infrastructure.database.models import Profile, ProfileRole
from infrastructure.database.repositories import ProfileRepository

import structlog

logger = structlog.get_logger()

ADMIN_SESSION_COOKIE = "admin_session"
USER_SESSION_COOKIE = "user_session"
SESSION_MAX_AGE = 60 * 60 * 24 * 7  # 7 дней
JWT_ALGORITHM = "HS256"

ADMIN_ROLES = {ProfileRole.ADMIN.value, ProfileRole.STAFF.value}

password_ctx = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return password_ctx.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return password_ctx.verify(password, password_hash)


def identifier_to_email(identifier: str) -> str:
    """
    Логин: email как есть, телефон → синтетический email.

    Пример:
        identifier_to_email("0532 123 45 67") → "p905321234567@phone.lezzettetek.local"
    """
    identifier = identifier.strip()
    if "@" in identifier:
        return identifier.lower()
    return phone_to_email(identifier)


async def authenticate(session: AsyncSession, identifier: str, password: str) -> Profile:
    """Найти пользователя и проверить пароль. Иначе AuthenticationError."""
    try:
        email = identifier_to_email(identifier)
    except ValidationError:
        raise AuthenticationError("E-posta / telefon veya şifre hatalı.")

    profile = await ProfileRepository(session).get_by_email(email)

    # pbkdf2 - это десятки тысяч раундов, event loop не блокируем
    if not profile or not await run_in_threadpool(verify_password, password, profile.password_hash):
        logger.warning("login_failed", identifier=email)
        raise AuthenticationError("E-posta / telefon veya şifre hatalı.")

    return profile


def ensure_admin_access(profile: Profile, settings: Settings):
    """
    Доступ в админку: роль admin/staff ИЛИ email из списка админов.
    """
    role = (profile.role or "").strip().lower()
    has_role = role in ADMIN_ROLES
    has_email_access = profile.email.strip().lower() in settings.admin_notify_emails

    if not has_role and not has_email_access:
        logger.warning("admin_access_denied", profile_id=profile.id, role=role)
        raise PermissionDenied("Yetkisiz erişim")


def issue_session_token(profile: Profile, settings: Settings, now: Optional[datetime] = None) -> str:
    """Подписанный JWT: sub = id профиля, role, exp = +7 дней."""
    now = now or datetime.now(timezone.utc)
    payload = {
        "sub": profile.id,
        "role": profile.role,
        "iat": now,
        "exp": now + timedelta(seconds=SESSION_MAX_AGE),
    }
    return jwt.encode(payload, settings.session_secret, algorithm=JWT_ALGORITHM)


def decode_session_token(token: str, settings: Settings) -> dict:
    """Проверить подпись и срок. Плохой токен → AuthenticationError."""
    try:
        return jwt.decode(token, settings.session_secret, algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError as e:
        logger.warning("session_token_invalid", error=str(e))
        raise AuthenticationError("Oturum geçersiz. Lütfen tekrar giriş yapın.")
