# app/errors.py
"""
❗ ОШИБКИ ПРИЛОЖЕНИЯ

Сервисы кидают эти исключения, а обработчики FastAPI
превращают их в единый ответ:

    {"success": false, "error": "<сообщение для пользователя>"}

Сообщения - на турецком (язык покупателей магазина).
Стектрейс наружу никогда не уходит.
"""

from typing import Any, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

import structlog

logger = structlog.get_logger()


# ==========================================
# ИЕРАРХИЯ ОШИБОК
# ==========================================

class AppError(Exception):
    """Базовая ошибка. status_code = какой HTTP код отдать."""

    status_code = 500
    default_message = "Beklenmeyen bir hata oluştu."

    def __init__(self, message: Optional[str] = None, details: Optional[List[Any]] = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ValidationError(AppError):
    """Неправильные или отсутствующие входные данные."""
    status_code = 400
    default_message = "Geçersiz istek."


class AuthenticationError(AppError):
    """Нет сессии или неверный логин/пароль."""
    status_code = 401
    default_message = "Oturum bulunamadı."


class PermissionDenied(AppError):
    """Пользователь есть, но роль не подходит."""
    status_code = 403
    default_message = "Yetkisiz erişim."


class NotFoundError(AppError):
    status_code = 404
    default_message = "Kayıt bulunamadı."


class ConflictError(AppError):
    """Такая запись уже есть (например, второй отзыв на товар)."""
    status_code = 409
    default_message = "Kayıt zaten mevcut."


class PersistenceError(AppError):
    """Операция с БД не удалась."""
    status_code = 500
    default_message = "Veritabanı işlemi başarısız oldu."


class ConfigurationError(AppError):
    """Не хватает переменных окружения (SMTP, карго и т.д.)."""
    status_code = 500
    default_message = "Sunucu yapılandırması eksik."


class CarrierError(AppError):
    """Карго API ответило ошибкой или недоступно."""
    status_code = 502
    default_message = "Kargo servisine bağlanırken hata oluştu."


def db_error_text(exc: Exception) -> str:
    """
    Короткий текст ошибки БД для пользователя.

    str() у ошибок SQLAlchemy содержит SQL и параметры (данные клиента),
    поэтому наружу отдаём только сообщение драйвера (exc.orig).
    Полный str(exc) пишем только в лог.
    """
    orig = getattr(exc, "orig", None)
    return str(orig if orig is not None else exc)


# ==========================================
# ОБРАБОТЧИКИ
# ==========================================

def _error_body(message: str, details: Optional[List[Any]] = None) -> dict:
    body = {"success": False, "error": message}
    if details:
        body["details"] = details
    return body


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "request_failed",
        path=request.url.path,
        status_code=exc.status_code,
        error=exc.message,
        error_type=type(exc).__name__
    )
    return JSONResponse(_error_body(exc.message, exc.details), status_code=exc.status_code)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Ошибки pydantic схем → 400.

    Все нарушения собираются за один проход, клиент видит их списком.
    """
    details = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        details.append({"field": field, "message": error.get("msg", "")})

    logger.warning("request_validation_failed", path=request.url.path, details=details)

    return JSONResponse(
        _error_body("Geçersiz istek: alanları kontrol edin.", details),
        status_code=400
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled_error",
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__
    )
    return JSONResponse(_error_body(AppError.default_message), status_code=500)


def register_error_handlers(app: FastAPI):
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
