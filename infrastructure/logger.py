# infrastructure/logger.py
"""
📝 ЛОГИРОВАНИЕ

structlog → JSON в stdout, одна строка = одно событие.

Имя события - snake_case на английском ("order_created"),
всё остальное - поля:
    logger.info("order_created", order_id=..., total_price=...)

request_id и путь запроса добавляются автоматически
(LoggingMiddleware кладёт их в contextvars).
"""

import logging
import sys

import structlog

# Библиотеки, которые слишком много пишут на INFO
NOISY_LOGGERS = ("aiogram", "aiosqlite", "httpx", "urllib3")


def setup_logging(debug: bool = False):
    """
    Инициализирует логирование.

    Вызывается один раз при старте приложения (main.py).
    """
    level = logging.DEBUG if debug else logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,  # request_id из middleware
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),  # турецкий текст как есть
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
