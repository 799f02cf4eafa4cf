# app/api/app.py
"""
FastAPI приложение магазина.

create_app() собирает всё вместе:
- настройки
- БД (engine + session maker)
- почта, Telegram бот, клиент карго
- middleware, обработчики ошибок, маршруты

Всё кладётся в app.state - никаких глобальных клиентов.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from app.api import api_routers
from app.api.middleware import AdminSessionMiddleware, LoggingMiddleware
from app.bot.services.notifications import create_bot
from app.errors import register_error_handlers
from config.settings import Settings, config
from infrastructure.carrier import CarrierClient
from infrastructure.database import close_db, create_engine_and_sessionmaker, init_db
from infrastructure.mailer import Mailer

import structlog

logger = structlog.get_logger()


# ==========================================
# 🔄 LIFESPAN (управление жизненным циклом приложения)
# ==========================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Когда приложение запускается и выключается.
    """

    # ========== ЗАПУСК ==========
    logger.info("app_startup")

    try:
        # Создаём таблицы в БД если их нет
        await init_db(app.state.engine)

        yield  # ← Здесь приложение работает

    finally:
        # ========== ВЫКЛЮЧЕНИЕ ==========
        logger.info("app_shutdown")

        try:
            await close_db(app.state.engine)
        except Exception as e:
            logger.error("database_close_error", error=str(e))

        bot = app.state.bot
        if bot is not None:
            try:
                await bot.session.close()
                logger.info("bot_session_closed")
            except Exception as e:
                logger.error("bot_shutdown_error", error=str(e))


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Создать приложение.

    Пример (тесты):
        app = create_app(Settings(database_url="sqlite+aiosqlite:///:memory:"))
    """
    settings = settings or config

    app = FastAPI(
        title="Lezzette Tek API",
        description="Vitrin, sipariş ve yönetim paneli API'si",
        version="1.0.0",
        lifespan=lifespan
    )

    # ========== ЗАВИСИМОСТИ ==========
    engine, session_maker = create_engine_and_sessionmaker(
        settings.async_database_url,
        echo=False
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_maker = session_maker
    app.state.mailer = Mailer(settings)
    app.state.bot = create_bot(settings)
    app.state.carrier = CarrierClient(settings)

    # ========== MIDDLEWARE ==========
    # Последний добавленный = первый в цепочке: логируем раньше gate
    app.add_middleware(AdminSessionMiddleware)
    app.add_middleware(LoggingMiddleware)

    register_error_handlers(app)

    for router in api_routers:
        app.include_router(router)

    # ==========================================
    # ENDPOINT: Health check
    # ==========================================

    @app.get("/health")
    async def health_check():
        """
        Простой endpoint для проверки что приложение живо.

        Пример:
            GET /health
            → {"status": "ok", "service": "lezzettetek_api"}
        """
        return {
            "status": "ok",
            "service": "lezzettetek_api"
        }

    return app
