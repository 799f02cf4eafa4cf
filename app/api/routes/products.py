# app/api/routes/products.py
"""Каталог: только чтение (изменения - через админку)."""

from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_db_session
from app.errors import NotFoundError
from app.schemas import ProductOut
from infrastructure.database.repositories import ProductRepository

router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("", response_model=List[ProductOut])
async def list_products(q: Optional[str] = None, session: AsyncSession = Depends(get_db_session)):
    """Активные товары, q = поиск по названию без учёта регистра."""
    return await ProductRepository(session).list_active(query=q)


@router.get("/{slug}", response_model=ProductOut)
async def get_product(slug: str, session: AsyncSession = Depends(get_db_session)):
    product = await ProductRepository(session).get_by_slug(slug)
    if not product:
        raise NotFoundError("Ürün bulunamadı")
    return product
