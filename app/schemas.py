# app/schemas.py
"""
📋 СХЕМЫ ЗАПРОСОВ И ОТВЕТОВ (Pydantic)

Когда приходит запрос, FastAPI сам проверит все поля
по этим моделям и соберёт ВСЕ ошибки за один проход
(см. app.errors.request_validation_handler).
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StringConstraints, field_validator

from infrastructure.database.models import PaymentMethod

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


# ==========================================
# CHECKOUT
# ==========================================

class CheckoutItem(BaseModel):
    """Строка корзины. Название и цена фиксируются в заказе."""
    product_id: NonEmptyStr
    product_name: NonEmptyStr
    unit_price: Decimal = Field(ge=0)
    quantity: int = Field(gt=0)


class OrderData(BaseModel):
    """Данные покупателя и способ оплаты."""
    customer_name: NonEmptyStr
    phone: NonEmptyStr
    email: Optional[EmailStr] = None
    address: NonEmptyStr
    city: NonEmptyStr
    district: NonEmptyStr
    note: Optional[str] = None
    payment_method: PaymentMethod

    @field_validator("email", "note", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class CheckoutRequest(OrderData):
    """
    Тело POST /api/orders.

    total_price от клиента не принимаем (extra="ignore"):
    сумма всегда считается на сервере.
    """
    model_config = ConfigDict(extra="ignore")

    items: List[CheckoutItem] = Field(min_length=1)

    def order_data(self) -> OrderData:
        return OrderData(**self.model_dump(exclude={"items"}))


# ==========================================
# ADMIN
# ==========================================

class StatusUpdateRequest(BaseModel):
    # Значение проверяет сервис (400 для неизвестного статуса)
    status: str


class ShippingPaymentTypeRequest(BaseModel):
    shipping_payment_type: str


class ShipmentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: NonEmptyStr = Field(alias="orderId")


class LoginRequest(BaseModel):
    """identifier = email или мобильный номер."""
    identifier: NonEmptyStr
    password: str = Field(min_length=1)


# ==========================================
# ОТЗЫВЫ
# ==========================================

class ReviewCreateRequest(BaseModel):
    product_id: NonEmptyStr
    rating: int = Field(ge=1, le=5)
    comment: NonEmptyStr
    image_url: Optional[str] = None


class ReviewOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    product_id: str
    user_id: str
    rating: int
    comment: str
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    reviewer_name: str


class ReviewStats(BaseModel):
    average_rating: float = 0
    total_reviews: int = 0


class ProductReviewsOut(BaseModel):
    reviews: List[ReviewOut]
    stats: ReviewStats


# ==========================================
# ОТВЕТЫ: каталог и заказы
# ==========================================

class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    slug: str
    name: str
    price: float
    stock: int = 0
    description: Optional[str] = None
    image_url: Optional[str] = None


class OrderItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    product_id: str
    product_name: str
    unit_price: float
    quantity: int
    line_total: float


class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    created_at: Optional[datetime] = None
    customer_name: str
    phone: str
    email: Optional[str] = None
    address: str
    city: str
    district: str
    note: Optional[str] = None
    payment_method: str
    status: str
    payment_status: Optional[str] = None
    subtotal: float
    shipping_fee: float
    total_price: float
    shipping_payment_type: Optional[str] = None
    shipping_carrier: Optional[str] = None
    shipping_tracking_number: Optional[str] = None
    shipping_reference_number: Optional[str] = None
    shipping_label_url: Optional[str] = None
    shipping_status: Optional[str] = None
    shipping_error_message: Optional[str] = None


class OrderDetailOut(OrderOut):
    items: List[OrderItemOut] = []
    can_create_shipment: bool = False
