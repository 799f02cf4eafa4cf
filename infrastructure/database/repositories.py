# infrastructure/database/repositories.py
"""
Repository паттерн.

Вместо того чтобы писать:
    session.execute(select(...))
    session.commit()
везде в коде, мы создаем методы:
    repo.get_by_id("...")
    repo.create(...)

Это делает код чище и безопаснее.
Каждый репозиторий получает сессию в конструкторе.
"""

from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .models import Order, OrderItem, Product, ProductReview, Profile

import structlog

logger = structlog.get_logger()


# ==========================================
# REPOSITORY: Order (работа с заказами)
# ==========================================

class OrderRepository:
    """
    Репозиторий для работы с заказами.

    ВАЖНО: create() и delete() сами делают commit -
    заказ и его товары пишутся двумя отдельными шагами.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **values) -> Order:
        """
        Создать заказ и сразу закоммитить.

        Пример:
            order = await repo.create(
                customer_name="Ayşe",
                phone="+905321234567",
                ...
            )
            print(order.id)
        """
        order = Order(**values)
        self.session.add(order)

        await self.session.commit()

        logger.info("order_row_created", order_id=order.id)

        return order

    async def delete(self, order_id: str):
        """Удалить заказ (используется только для отката при ошибке)."""
        stmt = delete(Order).where(Order.id == order_id)

        await self.session.execute(stmt)

        await self.session.commit()

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        # populate_existing: после update() объект в сессии может быть старым
        stmt = (
            select(Order)
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)

        return result.scalars().first()

    async def get_by_id_with_items(self, order_id: str) -> Optional[Order]:
        """
        Получить заказ вместе с товарами одним запросом.

        Без selectinload обращение к order.items в async
        режиме упадёт (ленивую загрузку тут делать нельзя).
        """
        stmt = (
            select(Order)
            .where(Order.id == order_id)
            .options(selectinload(Order.items))
        )
        result = await self.session.execute(stmt)

        return result.scalars().first()

    async def list_recent(self, status: Optional[str] = None, limit: int = 50) -> List[Order]:
        """
        Последние заказы для админки.

        Пример:
            orders = await repo.list_recent(status="new", limit=20)
        """
        stmt = select(Order)

        # Если передали статус - фильтруем еще и по статусу
        if status:
            stmt = stmt.where(Order.status == status)

        stmt = stmt.order_by(Order.created_at.desc()).limit(limit)
        result = await self.session.execute(stmt)

        return list(result.scalars().all())

    async def count_by_status(self) -> Dict[str, int]:
        """Статистика для дашборда: {"new": 3, "shipped": 10, ...}"""
        stmt = select(Order.status, func.count(Order.id)).group_by(Order.status)
        result = await self.session.execute(stmt)

        return {status: count for status, count in result.all()}

    async def update_fields(self, order_id: str, **values) -> Optional[Order]:
        """
        Обновить поля заказа и вернуть свежую версию.

        Пример:
            order = await repo.update_fields(order_id, status="preparing")
        """
        values.setdefault("updated_at", datetime.now(timezone.utc))
        stmt = update(Order).where(Order.id == order_id).values(**values)

        await self.session.execute(stmt)

        await self.session.commit()

        logger.info("order_updated", order_id=order_id, fields=sorted(values))

        return await self.get_by_id(order_id)


# ==========================================
# REPOSITORY: OrderItem (товары заказа)
# ==========================================

class OrderItemRepository:

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_many(self, order_id: str, items: Iterable[dict]) -> List[OrderItem]:
        """
        Вставить все товары заказа одним пакетом.

        items = [{"product_id", "product_name", "unit_price", "quantity", "line_total"}, ...]
        """
        rows = [OrderItem(order_id=order_id, **item) for item in items]
        self.session.add_all(rows)

        await self.session.commit()

        logger.info("order_items_created", order_id=order_id, count=len(rows))

        return rows


# ==========================================
# REPOSITORY: Product (каталог)
# ==========================================

class ProductRepository:

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, product_id: str) -> Optional[Product]:
        stmt = select(Product).where(Product.id == product_id)
        result = await self.session.execute(stmt)

        return result.scalars().first()

    async def get_by_slug(self, slug: str) -> Optional[Product]:
        stmt = select(Product).where(Product.slug == slug, Product.is_active.is_(True))
        result = await self.session.execute(stmt)

        return result.scalars().first()

    async def list_active(self, query: Optional[str] = None, limit: int = 200) -> List[Product]:
        stmt = select(Product).where(Product.is_active.is_(True))

        if query:
            stmt = stmt.where(func.lower(Product.name).contains(query.lower()))

        stmt = stmt.order_by(Product.name).limit(limit)
        result = await self.session.execute(stmt)

        return list(result.scalars().all())


# ==========================================
# REPOSITORY: Profile (пользователи)
# ==========================================

class ProfileRepository:

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, profile_id: str) -> Optional[Profile]:
        stmt = select(Profile).where(Profile.id == profile_id)
        result = await self.session.execute(stmt)

        return result.scalars().first()

    async def get_by_email(self, email: str) -> Optional[Profile]:
        stmt = select(Profile).where(func.lower(Profile.email) == email.strip().lower())
        result = await self.session.execute(stmt)

        return result.scalars().first()

    async def get_display_names(self, profile_ids: Iterable[str]) -> Dict[str, str]:
        """
        Имена для списка id одним запросом.
        Профили без full_name в результат не попадают.
        """
        ids = list(set(profile_ids))
        if not ids:
            return {}

        stmt = select(Profile.id, Profile.full_name).where(Profile.id.in_(ids))
        result = await self.session.execute(stmt)

        return {profile_id: name for profile_id, name in result.all() if name}


# ==========================================
# REPOSITORY: ProductReview (отзывы)
# ==========================================

class ReviewRepository:

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_recent(self, product_id: str, limit: int) -> List[ProductReview]:
        stmt = (
            select(ProductReview)
            .where(ProductReview.product_id == product_id)
            .order_by(ProductReview.created_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)

        return list(result.scalars().all())

    async def get_stats(self, product_id: str) -> Tuple[int, float]:
        """
        (количество, средняя оценка) по ВСЕМ отзывам товара,
        а не только по странице из list_recent().
        """
        stmt = (
            select(func.count(ProductReview.id), func.avg(ProductReview.rating))
            .where(ProductReview.product_id == product_id)
        )
        result = await self.session.execute(stmt)
        count, average = result.one()

        return int(count or 0), float(average or 0)

    async def get_by_product_and_user(self, product_id: str, user_id: str) -> Optional[ProductReview]:
        stmt = select(ProductReview).where(
            ProductReview.product_id == product_id,
            ProductReview.user_id == user_id
        )
        result = await self.session.execute(stmt)

        return result.scalars().first()

    async def create(self, **values) -> ProductReview:
        review = ProductReview(**values)
        self.session.add(review)

        await self.session.commit()

        logger.info("review_created", product_id=review.product_id, user_id=review.user_id)

        return review
