from decimal import Decimal

import pytest

from app.bot.keyboards import order_notification_keyboard
from app.bot.services.notifications import create_bot, notify_operator_new_order, order_card_text
from app.errors import ConfigurationError
from infrastructure.database.models import Order
from infrastructure.mailer import Mailer, build_order_status_email, status_label

ITEMS = [{"product_name": "Domates <Salçası>", "quantity": 2}]


def _order():
    return Order(
        id="order-1",
        customer_name="Ayşe Yılmaz",
        phone="+905321234567",
        address="Atatürk Cad. No: 5",
        city="İzmir",
        district="Karşıyaka",
        payment_method="kapida",
        total_price=Decimal("400.00"),
    )


class FakeBot:

    def __init__(self, fail=False):
        self.fail = fail
        self.messages = []

    async def send_message(self, **kwargs):
        if self.fail:
            raise RuntimeError("telegram down")
        self.messages.append(kwargs)


def test_order_card_text_escapes_html():
    text = order_card_text(_order(), ITEMS)

    assert "Domates &lt;Salçası&gt; × 2" in text
    assert "Kapıda Ödeme" in text
    assert "400.00 ₺" in text


def test_keyboard_links_to_admin_order():
    keyboard = order_notification_keyboard("order-1", "https://shop.example.com/")

    button = keyboard.inline_keyboard[0][0]
    assert button.url == "https://shop.example.com/admin/orders/order-1"


def test_keyboard_needs_site_url():
    assert order_notification_keyboard("order-1", "") is None


def test_bot_disabled_without_operator(settings):
    assert create_bot(settings) is None


async def test_notify_sends_card(settings):
    bot = FakeBot()
    settings = settings.model_copy(update={"operator_telegram_id": 42})

    await notify_operator_new_order(bot, settings, _order(), ITEMS)

    message = bot.messages[0]
    assert message["chat_id"] == 42
    assert message["parse_mode"] == "HTML"
    assert "order-1" in message["text"]


async def test_notify_failure_is_swallowed(settings):
    await notify_operator_new_order(FakeBot(fail=True), settings, _order(), ITEMS)


async def test_notify_without_bot_is_noop(settings):
    await notify_operator_new_order(None, settings, _order(), ITEMS)


def test_status_email_uses_turkish_label():
    mail = build_order_status_email("order-1", "Ayşe", "shipped")

    assert "Yeni Durum: Kargoya Verildi" in mail["text"]
    assert status_label("unknown") == "unknown"


async def test_mailer_requires_smtp(settings):
    with pytest.raises(ConfigurationError):
        await Mailer(settings).send(["ayse@example.com"], "Konu", "Metin")
