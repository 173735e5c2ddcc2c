from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class OrderStatus(str, Enum):
    PENDING_PAYMENT = "pending_payment"
    PAYMENT_VERIFIED = "payment_verified"
    PROCESSING = "processing"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    QR_CODE = "qr_code"
    CASH_ON_DELIVERY = "cash_on_delivery"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class NotificationType(str, Enum):
    ORDER_STATUS = "order_status"
    PAYMENT_VERIFIED = "payment_verified"
    PAYMENT_REJECTED = "payment_rejected"
    STOCK_BACK = "stock_back"
    NEW_ORDER = "new_order"
    LOW_STOCK = "low_stock"


class UserRole(str, Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


class Actor(BaseModel):
    """Текущий пользователь, полученный от Identity сервиса"""
    id: str
    role: UserRole
    full_name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class CustomerContact(BaseModel):
    id: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class Product(BaseModel):
    """Value Object: товар из каталога"""
    id: str
    name: str
    localized_name: Optional[str] = None
    unit: str
    price: Decimal


class OrderItem(BaseModel):
    """Позиция заказа. Цена и количество фиксируются при оформлении."""
    id: str
    order_id: str
    product_id: str
    product_name: str
    unit: str
    quantity: int = Field(gt=0)
    price: Decimal
    total: Decimal


class Order(BaseModel):
    """Domain Entity: заказ"""
    id: str
    display_code: str
    user_id: str
    status: OrderStatus
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    payment_proof_url: Optional[str] = None
    subtotal: Decimal
    delivery_fee: Decimal
    total: Decimal
    address: str
    phone: str
    delivery_instructions: Optional[str] = None
    delivery_date: Optional[date] = None
    delivered_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    version: int = 1
    items: list[OrderItem] = []

    def is_terminal(self) -> bool:
        return self.status in (OrderStatus.DELIVERED, OrderStatus.CANCELLED)

    def has_payment_proof(self) -> bool:
        return bool(self.payment_proof_url)

    def can_review_payment(self) -> bool:
        """Бизнес-правило: проверить оплату можно только один раз, пока она pending"""
        return not self.is_terminal() and self.payment_status == PaymentStatus.PENDING


class OrderDetails(BaseModel):
    order: Order
    customer: Optional[CustomerContact] = None


class Notification(BaseModel):
    id: str
    user_id: str
    type: NotificationType
    title: str
    message: str
    data: dict = {}
    read: bool = False
    created_at: datetime


class StoreSettings(BaseModel):
    delivery_fee: Decimal = Decimal("20")
    store_name: str = "Shree Bhagvan Singh Kirana Store"
    contact_phone: str = "7828303292"
    enable_cod: bool = True
    enable_qr_payment: bool = True

    def accepts(self, method: PaymentMethod) -> bool:
        if method == PaymentMethod.CASH_ON_DELIVERY:
            return self.enable_cod
        return self.enable_qr_payment
