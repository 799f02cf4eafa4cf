# app/api/routes/admin_pages.py
"""
Данные для страниц админки (/admin/...).

Эти пути закрыты AdminSessionMiddleware - без cookie сюда
запрос просто не дойдёт (будет редирект на /admin/login).
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_db_session
from app.schemas import OrderDetailOut, OrderItemOut, OrderOut
from app.services.orders import OrderService
from app.services.shipping import can_create_shipment
from infrastructure.database.models import OrderStatus
from infrastructure.database.repositories import OrderRepository

router = APIRouter(prefix="/admin", tags=["admin-pages"])


@router.get("/login")
async def admin_login_page(redirect: str = "/admin"):
    """Страница логина доступна всегда."""
    return {
        "page": "admin_login",
        "login_endpoint": "/api/admin/login",
        "redirect": redirect,
    }


@router.get("")
async def admin_dashboard(session: AsyncSession = Depends(get_db_session)):
    """Дашборд: сколько заказов в каждом статусе."""
    counts = await OrderRepository(session).count_by_status()
    stats = {status.value: counts.get(status.value, 0) for status in OrderStatus}

    return {"success": True, "data": {"orders_by_status": stats, "total_orders": sum(counts.values())}}


@router.get("/orders")
async def admin_orders(
    status: Optional[str] = None,
    limit: int = Query(50, ge=1, le=200),
    session: AsyncSession = Depends(get_db_session),
):
    orders = await OrderRepository(session).list_recent(status=status, limit=limit)
    return {
        "success": True,
        "data": [OrderOut.model_validate(order).model_dump(mode="json") for order in orders],
    }


@router.get("/orders/{order_id}")
async def admin_order_detail(order_id: str, session: AsyncSession = Depends(get_db_session)):
    order = await OrderService.get_order(session, order_id, with_items=True)

    detail = OrderDetailOut(
        **OrderOut.model_validate(order).model_dump(),
        items=[OrderItemOut.model_validate(item) for item in order.items],
        can_create_shipment=can_create_shipment(order),
    )
    return {"success": True, "data": detail.model_dump(mode="json")}
