# tests/conftest.py
"""
Общие фикстуры.

Каждый тест получает своё приложение с SQLite в памяти
и фейковыми почтой и карго (подменяются в app.state).
"""

from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient

from app.api.app import create_app
from app.errors import CarrierError
from app.services.auth import hash_password
from config.settings import Settings
from infrastructure.carrier import CarrierClient, ShipmentResult, ShipmentStatus
from infrastructure.database import close_db, init_db
from infrastructure.database.models import Order, Product, Profile

ADMIN_PASSWORD = "admin-pass-123"
CUSTOMER_PASSWORD = "customer-pass-123"


class FakeMailer:
    """Записывает письма вместо отправки."""

    def __init__(self):
        self.sent = []
        self.fail = False

    async def send(self, to, subject, text, html=None, bcc=None):
        if self.fail:
            raise ConnectionError("smtp down")
        self.sent.append({
            "to": list(to),
            "subject": subject,
            "text": text,
            "html": html,
            "bcc": list(bcc or []),
        })


class FakeCarrier(CarrierClient):
    """Карго без сети: отвечает заранее заданным результатом."""

    def __init__(self, settings):
        super().__init__(settings)
        self.requests = []
        self.error = None
        self.result = ShipmentResult(
            tracking_number="TRK123456",
            reference_number="REF-1",
            label_url="https://carrier.example.com/labels/TRK123456.pdf",
        )
        self.queries = []
        self.status = ShipmentStatus(reference_number="", tracking_number="12345678901", label_url=None)
        self.label_url = "https://carrier.example.com/labels/12345678901.pdf"

    def create_shipment(self, data):
        self.ensure_configured()
        self.requests.append(data)
        if self.error:
            raise CarrierError(self.error)
        return self.result

    def query_shipment(self, reference_number):
        self.ensure_configured()
        self.queries.append(reference_number)
        if self.error:
            raise CarrierError(self.error)
        return replace(self.status, reference_number=reference_number)

    def get_label(self, key):
        self.ensure_configured()
        self.queries.append(key)
        if self.error:
            raise CarrierError(self.error)
        return self.label_url


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        database_url="sqlite+aiosqlite:///:memory:",
        session_secret="test-session-secret",
        internal_api_token="internal-token",
        site_url="https://www.lezzettetek.example.com",
        order_notify_email="orders@lezzettetek.example.com",
        carrier_api_url="https://carrier.example.com/api",
        carrier_user="carrier-user",
        carrier_password="carrier-pass",
        bot_token="",
        operator_telegram_id=None,
        environment="development",
    )


@pytest.fixture
async def app(settings):
    app = create_app(settings)
    await init_db(app.state.engine)

    app.state.mailer = FakeMailer()
    app.state.carrier = FakeCarrier(settings)

    yield app

    await close_db(app.state.engine)


@pytest.fixture
def db(app):
    """Фабрика сессий приложения: async with db() as session: ..."""
    return app.state.session_maker


@pytest.fixture
async def session(db):
    async with db() as session:
        yield session


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture
def mailer(app):
    return app.state.mailer


@pytest.fixture
def carrier(app):
    return app.state.carrier


@pytest.fixture
def admin_cookie():
    # Gate проверяет только наличие cookie
    return {"Cookie": "admin_session=anything"}


# ==========================================
# ФАБРИКИ ДАННЫХ
# ==========================================

@pytest.fixture
def make_product(db):
    async def _make(**values):
        values.setdefault("slug", "domates-salcasi")
        values.setdefault("name", "Domates Salçası")
        values.setdefault("price", Decimal("120.00"))
        values.setdefault("stock", 10)
        async with db() as session:
            product = Product(**values)
            session.add(product)
            await session.commit()
            return product
    return _make


@pytest.fixture
def make_profile(db):
    async def _make(password=CUSTOMER_PASSWORD, **values):
        values.setdefault("email", "musteri@example.com")
        values.setdefault("full_name", "Ayşe Yılmaz")
        values.setdefault("role", "customer")
        async with db() as session:
            profile = Profile(password_hash=hash_password(password), **values)
            session.add(profile)
            await session.commit()
            return profile
    return _make


@pytest.fixture
def make_order(db):
    async def _make(**values):
        values.setdefault("customer_name", "Ayşe Yılmaz")
        values.setdefault("phone", "+905321234567")
        values.setdefault("email", "ayse@example.com")
        values.setdefault("address", "Atatürk Cad. No: 5")
        values.setdefault("city", "İzmir")
        values.setdefault("district", "Karşıyaka")
        values.setdefault("payment_method", "kapida")
        values.setdefault("status", "new")
        values.setdefault("payment_status", "awaiting_payment")
        values.setdefault("subtotal", Decimal("250.00"))
        values.setdefault("shipping_fee", Decimal("150.00"))
        values.setdefault("total_price", Decimal("400.00"))
        values.setdefault("created_at", datetime(2026, 3, 5, 12, 0, tzinfo=timezone.utc))
        async with db() as session:
            order = Order(**values)
            session.add(order)
            await session.commit()
            return order
    return _make
