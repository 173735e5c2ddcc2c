"""Жизненный цикл заказа.

Единая таблица переходов, которой пользуются все сценарии и представления:

    pending_payment -> payment_verified -> processing -> out_for_delivery -> delivered
                                        \\-----------------/

processing можно пропустить: отправка в доставку разрешена и из payment_verified.
cancelled достижим из любого нетерминального статуса. delivered и cancelled терминальны.

Переход pending_payment -> payment_verified выполняется только проверкой оплаты
(verify_payment), а не через advance_status.
"""

from datetime import date, datetime
from typing import Optional

from storefront.domain.exceptions import IllegalTransitionError, ValidationError
from storefront.domain.models import Order, OrderStatus, PaymentMethod, PaymentStatus


ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING_PAYMENT: frozenset({OrderStatus.PAYMENT_VERIFIED, OrderStatus.CANCELLED}),
    OrderStatus.PAYMENT_VERIFIED: frozenset({
        OrderStatus.PROCESSING,
        OrderStatus.OUT_FOR_DELIVERY,
        OrderStatus.CANCELLED,
    }),
    OrderStatus.PROCESSING: frozenset({OrderStatus.OUT_FOR_DELIVERY, OrderStatus.CANCELLED}),
    OrderStatus.OUT_FOR_DELIVERY: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

# Статусы, которые админ выставляет напрямую через advance_status
ADVANCEABLE_STATUSES = frozenset({
    OrderStatus.PROCESSING,
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
})

TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

STATUS_LABELS: dict[OrderStatus, str] = {
    OrderStatus.PENDING_PAYMENT: "Pending Payment",
    OrderStatus.PAYMENT_VERIFIED: "Verified",
    OrderStatus.PROCESSING: "Processing",
    OrderStatus.OUT_FOR_DELIVERY: "Out for Delivery",
    OrderStatus.DELIVERED: "Delivered",
    OrderStatus.CANCELLED: "Cancelled",
}

STATUS_GROUPS: dict[str, frozenset[OrderStatus]] = {
    "pending": frozenset({OrderStatus.PAYMENT_VERIFIED, OrderStatus.PROCESSING}),
    "active": frozenset({OrderStatus.PROCESSING, OrderStatus.OUT_FOR_DELIVERY}),
    "open": frozenset(set(OrderStatus) - TERMINAL_STATUSES),
    "closed": TERMINAL_STATUSES,
}


def is_terminal(status: OrderStatus) -> bool:
    return status in TERMINAL_STATUSES


def allowed_transitions(current: OrderStatus) -> frozenset[OrderStatus]:
    return ORDER_TRANSITIONS[current]


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in ORDER_TRANSITIONS[current]


def ensure_transition(current: OrderStatus, target: OrderStatus) -> None:
    if is_terminal(current):
        raise IllegalTransitionError(current.value, target.value, "заказ в терминальном статусе")
    if not can_transition(current, target):
        raise IllegalTransitionError(current.value, target.value)


def resolve_group(name: str) -> frozenset[OrderStatus]:
    try:
        return STATUS_GROUPS[name]
    except KeyError:
        raise ValidationError(f"Неизвестная группа статусов: {name}")


def advance(
    order: Order,
    target: OrderStatus,
    now: datetime,
    delivery_date: Optional[date] = None,
) -> Order:
    """Применяет административный переход статуса и возвращает новое состояние заказа"""
    if target not in ADVANCEABLE_STATUSES:
        raise IllegalTransitionError(
            order.status.value, target.value, "статус оплаты меняется только проверкой платежа"
        )
    ensure_transition(order.status, target)

    changes: dict = {"status": target, "updated_at": now}
    if target == OrderStatus.OUT_FOR_DELIVERY:
        if delivery_date is None:
            raise ValidationError("Для отправки в доставку нужна дата доставки")
        if delivery_date < now.date():
            raise ValidationError(f"Дата доставки {delivery_date.isoformat()} уже прошла")
        changes["delivery_date"] = delivery_date
    elif target == OrderStatus.DELIVERED:
        changes["delivered_at"] = now
    return order.model_copy(update=changes)


def _ensure_payment_reviewable(order: Order, target: OrderStatus) -> None:
    if order.is_terminal():
        raise IllegalTransitionError(order.status.value, target.value, "заказ в терминальном статусе")
    if not order.can_review_payment():
        raise IllegalTransitionError(
            order.status.value, target.value, f"оплата уже в статусе {order.payment_status.value}"
        )


def verify_payment(order: Order, now: datetime) -> Order:
    _ensure_payment_reviewable(order, OrderStatus.PAYMENT_VERIFIED)
    if order.payment_method == PaymentMethod.QR_CODE and not order.has_payment_proof():
        raise ValidationError("Нельзя подтвердить оплату без скриншота платежа")
    return order.model_copy(update={
        "payment_status": PaymentStatus.VERIFIED,
        "status": OrderStatus.PAYMENT_VERIFIED,
        "updated_at": now,
    })


def reject_payment(order: Order, now: datetime) -> Order:
    _ensure_payment_reviewable(order, OrderStatus.PENDING_PAYMENT)
    return order.model_copy(update={
        "payment_status": PaymentStatus.REJECTED,
        "status": OrderStatus.PENDING_PAYMENT,
        "updated_at": now,
    })


def resubmit_payment_proof(order: Order, proof_url: str, now: datetime) -> Order:
    """Повторная загрузка скриншота после отклонения (или замена до проверки)"""
    if not proof_url:
        raise ValidationError("Не передан скриншот платежа")
    if order.payment_method != PaymentMethod.QR_CODE:
        raise ValidationError("Скриншот нужен только для оплаты по QR коду")
    if order.status != OrderStatus.PENDING_PAYMENT or order.payment_status == PaymentStatus.VERIFIED:
        raise IllegalTransitionError(
            order.status.value, OrderStatus.PENDING_PAYMENT.value, "оплата уже не ожидает скриншота"
        )
    return order.model_copy(update={
        "payment_proof_url": proof_url,
        "payment_status": PaymentStatus.PENDING,
        "updated_at": now,
    })
