# main.py
"""
🚀 ГЛАВНЫЙ ФАЙЛ ЗАПУСКА

Это точка входа - отсюда всё начинается!

Функция: поднимает FastAPI (витрина + админка) через uvicorn.

Команда для запуска:
    python main.py
"""

import uvicorn

from app.api.app import create_app
from config.settings import config
from infrastructure.logger import setup_logging

import structlog

logger = structlog.get_logger()


# 1. Инициализируем логирование (все логи будут видны)
setup_logging(debug=config.debug)

# 2. Создаём приложение (uvicorn main:app тоже работает)
app = create_app(config)


def validate_config():
    """
    Проверка критических параметров.

    Не падаем: без SMTP / карго магазин работает,
    просто письма и отправки вернут ошибку конфигурации.
    """
    if config.is_production and config.session_secret == "dev-session-secret-change-me":
        logger.error("session_secret_default", message="SESSION_SECRET не изменён в production")
        raise ValueError("SESSION_SECRET не задан")

    if not config.smtp_configured:
        logger.warning("smtp_not_configured", message="Письма клиентам отправляться не будут")

    if not config.internal_api_token:
        logger.warning("internal_token_not_configured")


def main():
    validate_config()

    logger.info(
        "api_starting",
        host=config.api_host,
        port=config.api_port,
        environment=config.environment
    )

    uvicorn.run(
        app,
        host=config.api_host,
        port=config.api_port,
        log_level="info",
        access_log=True,  # ← Логируем HTTP запросы
    )


# ==========================================
# 📌 ENTRY POINT (точка входа)
# ==========================================

if __name__ == "__main__":
    try:
        main()

    except KeyboardInterrupt:
        # Если нажал Ctrl+C
        logger.info("app_interrupted", message="⛔ Приложение остановлено пользователем (Ctrl+C)")

    finally:
        logger.info("app_final_shutdown", message="👋 Приложение полностью выключено")
