# app/api/routes/reviews.py
"""
Отзывы о товарах.

GET  /api/reviews?product_id=...&limit=10  - список + статистика
POST /api/reviews                          - новый отзыв (нужен вход)
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_db_session, require_user_id
from app.errors import ValidationError
from app.schemas import ProductReviewsOut, ReviewCreateRequest
from app.services.reviews import ReviewService

router = APIRouter(prefix="/api/reviews", tags=["reviews"])

MAX_LIMIT = 50


@router.get("", response_model=ProductReviewsOut)
async def list_reviews(
    product_id: Optional[str] = None,
    limit: int = 10,
    session: AsyncSession = Depends(get_db_session),
):
    if not product_id:
        raise ValidationError("product_id gerekli")

    limit = max(1, min(limit, MAX_LIMIT))

    return await ReviewService.get_product_reviews(session, product_id, limit)


@router.post("", status_code=201)
async def create_review(
    payload: ReviewCreateRequest,
    user_id: str = Depends(require_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    review = await ReviewService.add_product_review(session, user_id, payload)

    return {
        "success": True,
        "review": {
            "id": review.id,
            "product_id": review.product_id,
            "rating": review.rating,
            "comment": review.comment,
            "image_url": review.image_url,
        },
    }
