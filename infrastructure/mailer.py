# infrastructure/mailer.py
"""
✉️ ОТПРАВКА ПИСЕМ (SMTP)

Письма клиентам: "заказ принят" и "статус изменён".
Админы получают копию (BCC).

smtplib блокирующий, поэтому отправка идёт в отдельном потоке
(asyncio.to_thread) и не тормозит event loop.
"""

import asyncio
import smtplib
from email.message import EmailMessage
from html import escape
from typing import List, Optional, Sequence

from config.settings import Settings
from app.errors import ConfigurationError

import structlog

logger = structlog.get_logger()

SHOP_NAME = "Lezzette Tek"

STATUS_LABELS = {
    "new": "Yeni",
    "preparing": "Hazırlanıyor",
    "shipped": "Kargoya Verildi",
    "completed": "Tamamlandı",
    "canceled": "İptal",
    "pending_payment": "Ödeme Bekleniyor",
    "paid": "Ödendi",
    "payment_failed": "Ödeme Başarısız",
}


def status_label(status: str) -> str:
    """Турецкое название статуса для письма (неизвестный → как есть)."""
    return STATUS_LABELS.get(status, status)


def _money(value) -> str:
    return f"{float(value):.2f} ₺"


class Mailer:
    """
    SMTP клиент.

    Создаётся один раз в create_app() и лежит в app.state.mailer.
    В тестах подменяется на фейк с тем же методом send().
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    async def send(
        self,
        to: Sequence[str],
        subject: str,
        text: str,
        html: Optional[str] = None,
        bcc: Optional[Sequence[str]] = None
    ):
        """
        Отправить письмо.

        Кидает ConfigurationError если SMTP не настроен.
        Ошибки SMTP пробрасываются как есть - решает вызывающий код.
        """
        if not self.settings.smtp_configured:
            raise ConfigurationError(
                "SMTP konfigürasyonu eksik. Lütfen env değişkenlerini kontrol edin."
            )

        message = EmailMessage()
        message["From"] = self.settings.mail_from
        message["To"] = ", ".join(to)
        if bcc:
            message["Bcc"] = ", ".join(bcc)
        message["Subject"] = subject
        message.set_content(text)
        if html:
            message.add_alternative(html, subtype="html")

        await asyncio.to_thread(self._deliver, message)

        logger.info("mail_sent", to=list(to), subject=subject)

    def _deliver(self, message: EmailMessage):
        s = self.settings
        smtp_class = smtplib.SMTP_SSL if s.smtp_secure else smtplib.SMTP

        with smtp_class(s.smtp_host, s.smtp_port, timeout=30) as smtp:
            if not s.smtp_secure:
                smtp.starttls()
            smtp.login(s.smtp_user, s.smtp_pass)
            smtp.send_message(message)


# ==========================================
# ШАБЛОНЫ ПИСЕМ
# ==========================================

def _wrap_html(title: str, body: str) -> str:
    return f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
      <h2 style="color: #15803d;">{title}</h2>
      {body}
      <p style="margin-top: 30px; color: #6b7280; font-size: 14px;">
        {SHOP_NAME}<br>
        Bu e-posta otomatik olarak gönderilmiştir.
      </p>
    </div>
    """


def build_order_status_email(order_id: str, customer_name: str, status: str) -> dict:
    """
    Письмо "статус заказа изменён".

    Возвращает {"subject", "text", "html"} для Mailer.send().
    """
    name = customer_name or "Değerli Müşterimiz"
    label = status_label(status)
    subject = "Sipariş Durumu Güncellendi"

    text = (
        f"{subject}\n\n"
        f"Merhaba {name},\n\n"
        f"Siparişinizin durumu güncellenmiştir:\n\n"
        f"Sipariş ID: {order_id}\n"
        f"Yeni Durum: {label}\n\n"
        f"Siparişinizle ilgili tüm bilgilere web sitemizden ulaşabilirsiniz.\n\n"
        f"{SHOP_NAME}\n"
        f"Bu e-posta otomatik olarak gönderilmiştir."
    )

    html = _wrap_html(subject, f"""
      <p>Merhaba {escape(name)},</p>
      <p>Siparişinizin durumu güncellenmiştir:</p>
      <div style="background-color: #f3f4f6; padding: 15px; border-radius: 8px; margin: 20px 0;">
        <p style="margin: 5px 0;"><strong>Sipariş ID:</strong> {escape(order_id)}</p>
        <p style="margin: 5px 0;"><strong>Yeni Durum:</strong> {escape(label)}</p>
      </div>
      <p>Siparişinizle ilgili tüm bilgilere web sitemizden ulaşabilirsiniz.</p>
    """)

    return {"subject": subject, "text": text, "html": html}


def build_order_confirmation_email(
    order_id: str,
    customer_name: str,
    items: List[dict],
    subtotal,
    shipping_fee,
    total_price
) -> dict:
    """
    Письмо "заказ принят" со списком товаров.

    items = [{"product_name", "quantity", "unit_price", "line_total"}, ...]
    """
    name = customer_name or "Değerli Müşterimiz"
    subject = "Siparişiniz Alındı"

    lines = "\n".join(
        f"- {item['product_name']} x{item['quantity']} = {_money(item['line_total'])}"
        for item in items
    )
    text = (
        f"{subject}\n\n"
        f"Merhaba {name},\n\n"
        f"Siparişiniz başarıyla alınmıştır. En kısa sürede hazırlanıp size ulaştırılacaktır.\n\n"
        f"Sipariş ID: {order_id}\n\n"
        f"Sipariş Detayları:\n{lines}\n\n"
        f"Ara Toplam: {_money(subtotal)}\n"
        f"Kargo: {_money(shipping_fee)}\n"
        f"Toplam: {_money(total_price)}\n\n"
        f"{SHOP_NAME}\n"
        f"Bu e-posta otomatik olarak gönderilmiştir."
    )

    cell = "padding: 8px; border-bottom: 1px solid #e5e7eb;"
    rows = "".join(
        f"<tr>"
        f"<td style=\"{cell}\">{escape(item['product_name'])}</td>"
        f"<td style=\"{cell} text-align: center;\">{item['quantity']}</td>"
        f"<td style=\"{cell} text-align: right;\">{_money(item['unit_price'])}</td>"
        f"<td style=\"{cell} text-align: right;\">{_money(item['line_total'])}</td>"
        f"</tr>"
        for item in items
    )

    html = _wrap_html(subject, f"""
      <p>Merhaba {escape(name)},</p>
      <p>Siparişiniz başarıyla alınmıştır. En kısa sürede hazırlanıp size ulaştırılacaktır.</p>
      <div style="background-color: #f3f4f6; padding: 15px; border-radius: 8px; margin: 20px 0;">
        <p style="margin: 5px 0;"><strong>Sipariş ID:</strong> {escape(order_id)}</p>
      </div>
      <table style="width: 100%; border-collapse: collapse; margin: 20px 0;">
        <thead>
          <tr style="background-color: #f9fafb;">
            <th style="padding: 8px; text-align: left;">Ürün</th>
            <th style="padding: 8px; text-align: center;">Adet</th>
            <th style="padding: 8px; text-align: right;">Birim Fiyat</th>
            <th style="padding: 8px; text-align: right;">Toplam</th>
          </tr>
        </thead>
        <tbody>{rows}</tbody>
      </table>
      <p style="text-align: right;">Ara Toplam: {_money(subtotal)}<br>
        Kargo: {_money(shipping_fee)}<br>
        <strong>Toplam: {_money(total_price)}</strong></p>
    """)

    return {"subject": subject, "text": text, "html": html}
