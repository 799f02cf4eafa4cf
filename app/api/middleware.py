# app/api/middleware.py
"""
🔄 MIDDLEWARE (перехватчики)

Middleware срабатывают для КАЖДОГО HTTP запроса.
Используются для:
- Логирования
- Защиты страниц /admin
"""

import time
import uuid
from urllib.parse import urlencode

from fastapi import Request
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.services.auth import ADMIN_SESSION_COOKIE

import structlog

logger = structlog.get_logger()

ADMIN_PREFIX = "/admin"
ADMIN_LOGIN_PATH = "/admin/login"


# ==========================================
# LOGGING MIDDLEWARE (логирование)
# ==========================================

class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Логирует каждый запрос.

    Помогает отладке и мониторингу.
    """

    async def dispatch(self, request: Request, call_next):
        # Все логи этого запроса получат request_id
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12],
            path=request.url.path,
        )

        logger.info(
            "request_received",
            method=request.method,
            remote_ip=request.client.host if request.client else "unknown"
        )

        started = time.perf_counter()

        # Передаём дальше обработчику
        response = await call_next(request)

        logger.info(
            "request_completed",
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1)
        )

        return response


# ==========================================
# ADMIN SESSION GATE
# ==========================================

def is_admin_path(path: str) -> bool:
    """/admin и /admin/... (но не /administrator)."""
    return path == ADMIN_PREFIX or path.startswith(ADMIN_PREFIX + "/")


def admin_login_redirect_url(path: str) -> str:
    """/admin/orders → /admin/login?redirect=%2Fadmin%2Forders"""
    return f"{ADMIN_LOGIN_PATH}?{urlencode({'redirect': path})}"


class AdminSessionMiddleware(BaseHTTPMiddleware):
    """
    Защита страниц /admin.

    - /admin/login → пропускаем всегда
    - /admin, /admin/... без cookie admin_session → редирект на логин,
      исходный путь сохраняем в ?redirect=
    - cookie есть → пропускаем (содержимое НЕ проверяем:
      роль и пароль проверяются при логине)
    - остальные пути → пропускаем
    """

    async def dispatch(self, request: Request, call_next):
        path = request.url.path

        if path == ADMIN_LOGIN_PATH or not is_admin_path(path):
            return await call_next(request)

        if ADMIN_SESSION_COOKIE not in request.cookies:
            logger.info("admin_gate_redirect", path=path)
            return RedirectResponse(admin_login_redirect_url(path), status_code=307)

        return await call_next(request)
