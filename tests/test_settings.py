from config.settings import Settings


def test_admin_notify_emails_are_merged_and_deduplicated():
    settings = Settings(
        _env_file=None,
        order_notify_email="a@example.com, B@example.com",
        admin_email="b@example.com",
        contact_notify_email="",
    )

    assert settings.admin_notify_emails == ["a@example.com", "b@example.com"]


def test_postgres_url_uses_asyncpg():
    settings = Settings(_env_file=None, database_url="postgresql://u:p@db:5432/shop?sslmode=disable")

    assert settings.async_database_url == "postgresql+asyncpg://u:p@db:5432/shop"


def test_smtp_configured():
    assert Settings(_env_file=None).smtp_configured is False
    assert Settings(
        _env_file=None,
        smtp_host="smtp.example.com",
        smtp_user="user",
        smtp_pass="pass",
        mail_from="shop@example.com",
    ).smtp_configured is True
