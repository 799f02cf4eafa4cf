# config/settings.py
"""
Settings файл - здесь живут все настройки приложения.

Логика: когда приложение запускается, оно читает .env файл
и создает объект 'config' со всеми необходимыми значениями.

Если какое-то значение из .env потеряется или будет неправильного типа,
Pydantic сразу выдаст ошибку и подскажет что не так.
"""

from typing import List, Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Основной класс настроек.

    BaseSettings = специальный класс Pydantic который:
    1. Автоматически читает .env файл
    2. Валидирует типы (SMTP_PORT должен быть int и т.д.)
    3. Выдает ошибку если значение нельзя привести к типу

    Пустые строки = "не настроено". Проверка обязательных значений
    делается там, где они реально нужны (ConfigurationError).
    """

    # ==========================================
    # DATABASE
    # ==========================================
    database_url: str = "sqlite+aiosqlite:///./lezzettetek.db"

    # ==========================================
    # API
    # ==========================================
    api_host: str = "0.0.0.0"
    api_port: int = 5000
    site_url: str = ""

    # Секрет для подписи cookie сессий (JWT)
    session_secret: str = "dev-session-secret-change-me"

    # Токен для внутренних вызовов (/api/shipping/create)
    internal_api_token: str = ""

    # ==========================================
    # SMTP (письма клиентам)
    # ==========================================
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_secure: bool = False
    smtp_user: str = ""
    smtp_pass: str = ""
    mail_from: str = ""

    # Адреса админов (через запятую), получают копии писем
    order_notify_email: str = ""
    admin_email: str = ""
    contact_notify_email: str = ""

    # ==========================================
    # TELEGRAM (уведомления оператору)
    # ==========================================
    bot_token: str = ""
    operator_telegram_id: Optional[int] = None

    # ==========================================
    # КАРГО (REST API перевозчика)
    # ==========================================
    carrier_name: str = "yurtici"
    carrier_api_url: str = ""
    carrier_user: str = ""
    carrier_password: str = ""
    carrier_timeout: float = 15.0

    # ==========================================
    # ENVIRONMENT
    # ==========================================
    environment: Literal["development", "production"] = "development"
    debug: bool = True

    # Конфигурация Pydantic
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        case_sensitive=False
    )

    @property
    def async_database_url(self) -> str:
        """Convert standard PostgreSQL URL to asyncpg format"""
        url = self.database_url
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        if "sslmode=disable" in url:
            url = url.replace("?sslmode=disable", "")
        return url

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def smtp_configured(self) -> bool:
        """Все ли SMTP значения на месте"""
        return all([
            self.smtp_host,
            self.smtp_port,
            self.smtp_user,
            self.smtp_pass,
            self.mail_from,
        ])

    @property
    def admin_notify_emails(self) -> List[str]:
        """
        Все адреса админов без дублей.

        Пример:
            ORDER_NOTIFY_EMAIL="a@x.com, b@x.com"
            ADMIN_EMAIL="A@x.com"
            → ["a@x.com", "b@x.com"]
        """
        result: List[str] = []
        for raw in (self.order_notify_email, self.admin_email, self.contact_notify_email):
            for part in raw.split(","):
                email = part.strip().lower()
                if email and email not in result:
                    result.append(email)
        return result


config = Settings()
