# app/api/routes/shipping.py
"""
Внутренний маршрут карго: POST /api/shipping/create

Для других сервисов (не для браузера).
Нужен заголовок Authorization: Bearer <INTERNAL_API_TOKEN>.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_carrier, get_db_session, require_internal_token
from app.schemas import ShipmentRequest
from app.services.shipments import ShipmentService
from infrastructure.carrier import CarrierClient

router = APIRouter(
    prefix="/api/shipping",
    tags=["shipping"],
    dependencies=[Depends(require_internal_token)]
)


@router.post("/create")
async def create_shipment(
    payload: ShipmentRequest,
    session: AsyncSession = Depends(get_db_session),
    carrier: CarrierClient = Depends(get_carrier),
):
    data = await ShipmentService.create_shipment(session, carrier, payload.order_id)
    return {"ok": True, **data}
