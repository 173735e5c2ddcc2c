from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List

from storefront.domain.lifecycle import STATUS_LABELS
from storefront.domain.models import (
    CustomerContact, Notification, Order, OrderStatus, PaymentMethod, PaymentStatus
)


class CartLineRequest(BaseModel):
    product_id: str
    quantity: int = Field(gt=0)


class PlaceOrderRequest(BaseModel):
    items: List[CartLineRequest]
    address: str
    phone: str
    delivery_instructions: Optional[str] = None
    payment_method: PaymentMethod
    payment_proof_url: Optional[str] = None


class PlaceOrderResponse(BaseModel):
    order_id: str
    display_code: str
    status: OrderStatus
    payment_status: PaymentStatus
    total: Decimal


class PaymentProofRequest(BaseModel):
    payment_proof_url: str


class AdvanceStatusRequest(BaseModel):
    status: OrderStatus
    delivery_date: Optional[date] = None


class OrderItemResponse(BaseModel):
    id: str
    product_id: str
    product_name: str
    unit: str
    quantity: int
    price: Decimal
    total: Decimal


class OrderResponse(BaseModel):
    id: str
    display_code: str
    user_id: str
    status: OrderStatus
    status_label: str
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
    items: List[OrderItemResponse] = []

    @classmethod
    def from_domain(cls, order: Order):
        return cls(
            id=order.id,
            display_code=order.display_code,
            user_id=order.user_id,
            status=order.status,
            status_label=STATUS_LABELS[order.status],
            payment_method=order.payment_method,
            payment_status=order.payment_status,
            payment_proof_url=order.payment_proof_url,
            subtotal=order.subtotal,
            delivery_fee=order.delivery_fee,
            total=order.total,
            address=order.address,
            phone=order.phone,
            delivery_instructions=order.delivery_instructions,
            delivery_date=order.delivery_date,
            delivered_at=order.delivered_at,
            created_at=order.created_at,
            updated_at=order.updated_at,
            items=[OrderItemResponse(**item.model_dump(exclude={"order_id"})) for item in order.items]
        )


class OrderDetailsResponse(BaseModel):
    order: OrderResponse
    customer: Optional[CustomerContact] = None


class DashboardStatsResponse(BaseModel):
    today_orders: int
    pending_payments: int
    out_for_delivery: int
    recent_orders: List[OrderResponse]


class CustomerDashboardResponse(BaseModel):
    total_orders: int
    active_deliveries: int
    pending_payments: int
    recent_orders: List[OrderResponse]


class NotificationFeedResponse(BaseModel):
    notifications: List[Notification]
    unread_count: int


class StoreSettingsRequest(BaseModel):
    delivery_fee: Optional[Decimal] = None
    store_name: Optional[str] = None
    contact_phone: Optional[str] = None
    enable_cod: Optional[bool] = None
    enable_qr_payment: Optional[bool] = None


class ErrorResponse(BaseModel):
    detail: str
