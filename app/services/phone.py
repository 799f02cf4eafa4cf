# app/services/phone.py
"""
Телефоны Турции.

Принимаем любой формат, который вводят люди:
    0532 123 45 67 / +90 (532) 123-45-67 / 905321234567 / 5321234567
и приводим к одному виду: +905321234567
"""

import re

from app.errors import ValidationError

PHONE_EMAIL_DOMAIN = "phone.lezzettetek.local"

_NON_DIGITS = re.compile(r"\D")
_MOBILE = re.compile(r"^5\d{9}$")


def normalize_phone_tr(value: str) -> str:
    """
    Привести мобильный номер к формату +90XXXXXXXXXX.

    Кидает ValidationError если после чистки не осталось
    ровно 10 цифр, начинающихся с 5.
    """
    digits = _NON_DIGITS.sub("", value or "")
    if not digits:
        raise ValidationError("Geçersiz telefon numarası")

    if digits.startswith("0"):
        digits = digits[1:]
    if digits.startswith("90"):
        digits = digits[2:]

    if not _MOBILE.match(digits):
        raise ValidationError("Geçersiz telefon numarası")

    return f"+90{digits}"


def phone_to_email(phone: str) -> str:
    """
    Синтетический email для логина по телефону.

    Пример:
        phone_to_email("0532 123 45 67") → "p905321234567@phone.lezzettetek.local"
    """
    normalized = normalize_phone_tr(phone)
    return f"p{normalized.lstrip('+')}@{PHONE_EMAIL_DOMAIN}"
