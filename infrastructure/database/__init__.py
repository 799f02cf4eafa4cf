# infrastructure/database/__init__.py
"""
🗄️ DATABASE ИНИЦИАЛИЗАЦИЯ

Экспортируем все нужные функции и объекты.
"""

from infrastructure.database.base import (
    Base,
    create_engine_and_sessionmaker,
    get_db_session,
    init_db,
    close_db,
)

__all__ = [
    "Base",
    "create_engine_and_sessionmaker",
    "get_db_session",
    "init_db",
    "close_db",
]
