# infrastructure/database/models.py
"""
Здесь мы описываем структуру таблиц в базе данных.
SQLAlchemy автоматически создаст эти таблицы при первом запуске.

Каждый класс = одна таблица в БД
Каждое поле класса = один столбец в таблице
"""

import uuid
from datetime import datetime, timezone
from enum import Enum as PyEnum

from sqlalchemy import (
    Boolean,       # Логическое значение (true/false)
    Column,        # Определение столбца
    DateTime,      # Дата и время
    ForeignKey,    # Связь с другой таблицей
    Integer,       # Целые числа
    Numeric,       # Деньги (никаких float!)
    String,        # Текст фиксированной длины
    Text,          # Текст любой длины
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from infrastructure.database.base import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> str:
    return str(uuid.uuid4())


# ==========================================
# ENUMS (Перечисления)
# ==========================================
# В БД храним .value как строку (колонки String, не Enum)

class OrderStatus(str, PyEnum):
    """
    Статусы заказа (по какой стадии заказ находится).
    """
    NEW = "new"
    # Только что создан
    PREPARING = "preparing"
    # Собирается на складе
    SHIPPED = "shipped"
    # Передан в карго
    COMPLETED = "completed"
    # Доставлен
    CANCELED = "canceled"
    # Отменён

    # Статусы от платёжного шлюза (iyzico)
    PENDING_PAYMENT = "pending_payment"
    PAID = "paid"
    PAYMENT_FAILED = "payment_failed"


# Статусы которые админ может выставить руками
ADMIN_ORDER_STATUSES = (
    OrderStatus.NEW,
    OrderStatus.PREPARING,
    OrderStatus.SHIPPED,
    OrderStatus.COMPLETED,
    OrderStatus.CANCELED,
)


class PaymentStatus(str, PyEnum):
    UNPAID = "unpaid"
    AWAITING_PAYMENT = "awaiting_payment"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, PyEnum):
    """
    Способ оплаты.
    """
    HAVALE = "havale"   # Банковский перевод
    KAPIDA = "kapida"   # Оплата курьеру при получении (COD)
    IYZICO = "iyzico"   # Карта через платёжный шлюз


class ShippingPaymentType(str, PyEnum):
    """Чем курьер берёт оплату за COD заказ."""
    CASH = "cash"
    CARD = "card"


class ProfileRole(str, PyEnum):
    CUSTOMER = "customer"
    STAFF = "staff"
    ADMIN = "admin"


# ==========================================
# МОДЕЛЬ: Product (Таблица products)
# ==========================================

class Product(Base):
    """
    Товар каталога.
    Меняется только через админку, здесь только читаем.
    """
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=new_uuid)

    slug = Column(
        String(255),
        unique=True,
        nullable=False,
        index=True  # ← ищем товар по slug из URL
    )

    name = Column(String(255), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    stock = Column(Integer, default=0)
    description = Column(Text, nullable=True)
    image_url = Column(String(1024), nullable=True)
    is_active = Column(Boolean, default=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    reviews = relationship("ProductReview", back_populates="product")

    def __repr__(self):
        return f"<Product(id={self.id}, slug='{self.slug}', price={self.price})>"


# ==========================================
# МОДЕЛЬ: Order (Таблица orders)
# ==========================================

class Order(Base):
    """
    Таблица заказов.

    total_price всегда считается на сервере:
    сумма line_total всех товаров + стоимость доставки.
    """
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=new_uuid)

    # ==========================================
    # Данные клиента (из формы checkout)
    # ==========================================
    customer_name = Column(String(255), nullable=False)
    phone = Column(String(32), nullable=False, index=True)
    email = Column(String(255), nullable=True)

    address = Column(Text, nullable=False)
    city = Column(String(128), nullable=False)
    district = Column(String(128), nullable=False)
    note = Column(Text, nullable=True)

    # ==========================================
    # Оплата и статус
    # ==========================================
    payment_method = Column(String(32), nullable=False)
    status = Column(
        String(32),
        default=OrderStatus.NEW.value,
        index=True  # ← часто фильтруем по статусу
    )
    payment_status = Column(String(32), nullable=True)

    subtotal = Column(Numeric(10, 2), nullable=False)
    shipping_fee = Column(Numeric(10, 2), nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)

    # COD: cash или card (сейчас политика = только card)
    shipping_payment_type = Column(String(16), nullable=True)

    # ==========================================
    # Карго (заполняется после создания отправки)
    # ==========================================
    shipping_carrier = Column(String(64), nullable=True)
    shipping_tracking_number = Column(String(64), nullable=True)
    shipping_reference_number = Column(String(64), nullable=True)
    shipping_label_url = Column(String(1024), nullable=True)
    shipping_status = Column(String(32), nullable=True)
    shipping_error_message = Column(Text, nullable=True)
    shipped_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        index=True  # ← сортируем по дате
    )
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    items = relationship(
        "OrderItem",
        back_populates="order",
        order_by="OrderItem.created_at"
    )

    def __repr__(self):
        return f"<Order(id={self.id}, status='{self.status}', total={self.total_price})>"


# ==========================================
# МОДЕЛЬ: OrderItem (Таблица order_items)
# ==========================================

class OrderItem(Base):
    """
    Товар в заказе.

    Название и цена копируются в момент заказа: если товар потом
    поменяют в каталоге, старые заказы остаются точными.
    """
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=new_uuid)

    order_id = Column(
        String(36),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    product_id = Column(String(36), nullable=False)
    product_name = Column(String(255), nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    line_total = Column(Numeric(10, 2), nullable=False)
    # unit_price * quantity (для отчётов)

    created_at = Column(DateTime(timezone=True), default=utcnow)

    order = relationship("Order", back_populates="items")

    def __repr__(self):
        return f"<OrderItem(id={self.id}, product='{self.product_name}', qty={self.quantity})>"


# ==========================================
# МОДЕЛЬ: Profile (Таблица profiles)
# ==========================================

class Profile(Base):
    """
    Пользователь + профиль.

    Логин по телефону идёт через синтетический email
    (см. app.services.phone.phone_to_email).
    """
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=new_uuid)
    full_name = Column(String(255), nullable=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(32), nullable=True)
    role = Column(
        String(16),
        default=ProfileRole.CUSTOMER.value,
        index=True
    )
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    reviews = relationship("ProductReview", back_populates="user")


# ==========================================
# МОДЕЛЬ: ProductReview (Таблица product_reviews)
# ==========================================

class ProductReview(Base):
    """
    Отзыв о товаре.

    Один пользователь = один отзыв на товар.
    Это гарантирует UNIQUE (product_id, user_id) в самой БД.
    """
    __tablename__ = "product_reviews"
    __table_args__ = (
        UniqueConstraint("product_id", "user_id", name="uq_product_reviews_product_user"),
    )

    id = Column(String(36), primary_key=True, default=new_uuid)

    product_id = Column(
        String(36),
        ForeignKey("products.id"),
        nullable=False,
        index=True
    )
    user_id = Column(
        String(36),
        ForeignKey("profiles.id"),
        nullable=False,
        index=True
    )

    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=False)
    image_url = Column(String(1024), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)

    product = relationship("Product", back_populates="reviews")
    user = relationship("Profile", back_populates="reviews")
