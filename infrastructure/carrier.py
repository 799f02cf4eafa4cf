# infrastructure/carrier.py
"""
🚚 КЛИЕНТ КАРГО (REST API перевозчика)

Создаёт отправку и возвращает трек-номер / ссылку на этикетку.
requests блокирующий - вызываем через run_in_threadpool.
"""

from dataclasses import dataclass
from typing import Optional

import requests

from app.errors import CarrierError, ConfigurationError
from config.settings import Settings

import structlog

logger = structlog.get_logger()

# "Такая отправка уже есть в системе" - считаем успехом
ALREADY_EXISTS_ERR_CODE = 60020


@dataclass
class ShipmentRequestData:
    cargo_key: str
    invoice_key: str
    receiver_name: str
    receiver_address: str
    city: str
    district: str
    phone: str
    cargo_count: int = 1


@dataclass
class ShipmentResult:
    tracking_number: str
    reference_number: Optional[str] = None
    label_url: Optional[str] = None
    reused: bool = False


@dataclass
class ShipmentStatus:
    """Ответ на запрос по reference: трек-номер появляется после приёма в филиале."""
    reference_number: str
    tracking_number: Optional[str] = None
    label_url: Optional[str] = None


class CarrierClient:
    """
    Клиент REST API перевозчика.

    Создаётся один раз в create_app() и лежит в app.state.carrier.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    @property
    def name(self) -> str:
        return self.settings.carrier_name

    def ensure_configured(self):
        s = self.settings
        if not s.carrier_api_url or not s.carrier_user or not s.carrier_password:
            logger.error("carrier_config_missing")
            raise ConfigurationError("Sunucu yapılandırması eksik (kargo env değişkenleri)")

    def _request(self, method: str, path: str, key: str, **kwargs) -> dict:
        """
        Запрос к API перевозчика. Любой ответ кроме JSON-объекта = CarrierError.
        """
        self.ensure_configured()
        s = self.settings

        try:
            response = requests.request(
                method,
                f"{s.carrier_api_url.rstrip('/')}{path}",
                auth=(s.carrier_user, s.carrier_password),
                timeout=s.carrier_timeout,
                **kwargs
            )
            body = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error("carrier_request_failed", path=path, key=key, error=str(e))
            raise CarrierError(f"Kargo servisine istek başarısız: {e}") from e

        body = ensure_object(body)

        logger.info(
            "carrier_response",
            path=path,
            key=key,
            http_status=response.status_code,
            out_flag=body.get("outFlag")
        )

        return body

    def create_shipment(self, data: ShipmentRequestData) -> ShipmentResult:
        """
        POST {carrier_api_url}/shipments

        Успех: outFlag == "0" или errCode == 60020 (уже создано).
        Иначе CarrierError с текстом от перевозчика.
        """
        payload = {
            "cargoKey": data.cargo_key,
            "invoiceKey": data.invoice_key,
            "receiverCustName": data.receiver_name,
            "receiverAddress": data.receiver_address,
            "cityName": data.city,
            "townName": data.district,
            "receiverPhone1": data.phone,
            "cargoCount": data.cargo_count,
        }

        body = self._request("POST", "/shipments", data.cargo_key, json=payload)

        return parse_shipment_response(body, data.cargo_key)

    def query_shipment(self, reference_number: str) -> ShipmentStatus:
        """
        GET {carrier_api_url}/shipments/{reference}

        Только читает: новую отправку никогда не создаёт.
        """
        body = self._request("GET", f"/shipments/{reference_number}", reference_number)

        return parse_query_response(body, reference_number)

    def get_label(self, key: str) -> str:
        """
        GET {carrier_api_url}/shipments/{key}/label → ссылка на этикетку.

        key = трек-номер или reference (cargo key).
        """
        body = self._request("GET", f"/shipments/{key}/label", key)

        return parse_label_response(body)


# ==========================================
# РАЗБОР ОТВЕТОВ (отдельно, чтобы тестировать без сети)
# ==========================================

def ensure_object(body) -> dict:
    if not isinstance(body, dict):
        logger.error("carrier_unexpected_body", body_type=type(body).__name__)
        raise CarrierError("Kargo servisinden beklenmeyen yanıt alındı.")
    return body


def _error_code(body: dict) -> int:
    try:
        return int(body.get("errCode") or 0)
    except (TypeError, ValueError):
        return 0


def _raise_carrier_error(body: dict, err_code: int):
    message = str(body.get("outResult", "") or "")
    if err_code:
        message += f" (errCode:{err_code})"
    err_message = str(body.get("errMessage", "") or "")
    if err_message:
        message += f" - {err_message}"
    raise CarrierError(f"Kargo hatası: {message.strip()}")


def parse_shipment_response(body: dict, cargo_key: str) -> ShipmentResult:
    """Ответ на создание отправки."""
    body = ensure_object(body)
    err_code = _error_code(body)

    reused = err_code == ALREADY_EXISTS_ERR_CODE
    if str(body.get("outFlag", "")) != "0" and not reused:
        _raise_carrier_error(body, err_code)

    return ShipmentResult(
        tracking_number=str(body.get("trackingNumber") or cargo_key),
        reference_number=body.get("referenceNumber"),
        label_url=body.get("labelUrl"),
        reused=reused,
    )


def parse_query_response(body: dict, reference_number: str) -> ShipmentStatus:
    """
    Ответ на запрос статуса.

    orderSeq пустой → отправка ещё не принята филиалом (tracking_number=None).
    """
    body = ensure_object(body)
    err_code = _error_code(body)

    if str(body.get("outFlag", "")) != "0":
        _raise_carrier_error(body, err_code)

    order_seq = body.get("orderSeq")

    return ShipmentStatus(
        reference_number=reference_number,
        tracking_number=str(order_seq) if order_seq else None,
        label_url=body.get("labelUrl"),
    )


def parse_label_response(body: dict) -> str:
    body = ensure_object(body)
    err_code = _error_code(body)

    if str(body.get("outFlag", "")) != "0":
        _raise_carrier_error(body, err_code)

    label_url = body.get("labelUrl")
    if not label_url:
        raise CarrierError("Kargo etiketi henüz hazır değil.")

    return str(label_url)
