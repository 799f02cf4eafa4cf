# app/services/reviews.py
"""
Сервис отзывов о товарах.
"""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import ConflictError, NotFoundError, PersistenceError
from app.schemas import ProductReviewsOut, ReviewCreateRequest, ReviewOut, ReviewStats
from infrastructure.database.models import ProductReview
from infrastructure.database.repositories import (
    ProductRepository,
    ProfileRepository,
    ReviewRepository,
)

import structlog

logger = structlog.get_logger()

DEFAULT_REVIEWER_NAME = "Kullanıcı"
DUPLICATE_REVIEW_MESSAGE = "Bu ürün için zaten bir yorumunuz var. Yorumunuzu düzenleyebilirsiniz."
UNIQUE_CONSTRAINT_NAME = "uq_product_reviews_product_user"


def is_duplicate_review_error(exc: IntegrityError) -> bool:
    """
    Нарушен именно UNIQUE (product_id, user_id)?

    Postgres называет ограничение по имени, SQLite перечисляет колонки.
    Остальные IntegrityError (например FOREIGN KEY) - не дубликат.
    """
    orig = exc.orig
    if getattr(orig, "constraint_name", None) == UNIQUE_CONSTRAINT_NAME:
        return True

    text = str(orig)
    return UNIQUE_CONSTRAINT_NAME in text or (
        "UNIQUE constraint failed" in text and "product_reviews.user_id" in text
    )


class ReviewService:

    @staticmethod
    async def get_product_reviews(
        session: AsyncSession,
        product_id: str,
        limit: int = 10
    ) -> ProductReviewsOut:
        """
        Последние отзывы товара + статистика.

        stats считается по ВСЕМ отзывам товара, limit влияет
        только на список. Нет отзывов → average 0, total 0.

        Пример:
            result = await ReviewService.get_product_reviews(session, product_id, limit=3)
            result.stats.total_reviews   # может быть больше 3
        """
        review_repo = ReviewRepository(session)

        reviews = await review_repo.list_recent(product_id, limit)
        total, average = await review_repo.get_stats(product_id)

        names = await ProfileRepository(session).get_display_names(r.user_id for r in reviews)

        items = [
            ReviewOut(
                id=review.id,
                product_id=review.product_id,
                user_id=review.user_id,
                rating=review.rating,
                comment=review.comment,
                image_url=review.image_url,
                created_at=review.created_at,
                reviewer_name=names.get(review.user_id, DEFAULT_REVIEWER_NAME),
            )
            for review in reviews
        ]

        return ProductReviewsOut(
            reviews=items,
            stats=ReviewStats(average_rating=average if total else 0, total_reviews=total),
        )

    @staticmethod
    async def add_product_review(
        session: AsyncSession,
        user_id: str,
        payload: ReviewCreateRequest
    ) -> ProductReview:
        """
        Добавить отзыв.

        Проверка "уже есть отзыв" - только чтобы красиво ответить.
        Настоящая защита - UNIQUE (product_id, user_id) в БД:
        если два запроса пришли одновременно, второй получит IntegrityError.
        """
        product = await ProductRepository(session).get_by_id(payload.product_id)
        if not product:
            raise NotFoundError("Ürün bulunamadı")

        review_repo = ReviewRepository(session)

        existing = await review_repo.get_by_product_and_user(payload.product_id, user_id)
        if existing:
            raise ConflictError(DUPLICATE_REVIEW_MESSAGE)

        try:
            return await review_repo.create(
                product_id=payload.product_id,
                user_id=user_id,
                rating=payload.rating,
                comment=payload.comment,
                image_url=payload.image_url or None,
            )
        except IntegrityError as e:
            await session.rollback()
            if is_duplicate_review_error(e):
                logger.warning("review_duplicate_race", product_id=payload.product_id, user_id=user_id)
                raise ConflictError(DUPLICATE_REVIEW_MESSAGE) from e
            logger.error("review_integrity_error", error=str(e), product_id=payload.product_id, user_id=user_id)
            raise PersistenceError("Yorum eklenirken bir hata oluştu.") from e
        except Exception as e:
            await session.rollback()
            logger.error("review_insert_failed", error=str(e), error_type=type(e).__name__)
            raise PersistenceError("Yorum eklenirken bir hata oluştu.") from e
