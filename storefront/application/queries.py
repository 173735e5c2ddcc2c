"""Read models для админки и личного кабинета. Никаких побочных эффектов."""

from datetime import datetime, timezone, tzinfo
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel

from storefront.application.access import require_admin
from storefront.application.interfaces import Clock, utc_now
from storefront.domain import lifecycle
from storefront.domain.exceptions import ValidationError
from storefront.domain.models import Actor, Order, OrderStatus, PaymentMethod, PaymentStatus


class OrderFilter(BaseModel):
    status: Optional[OrderStatus] = None
    group: Optional[str] = None
    payment_status: Optional[PaymentStatus] = None
    payment_method: Optional[PaymentMethod] = None
    limit: Optional[int] = None
    offset: int = 0


class DashboardStats(BaseModel):
    today_orders: int
    pending_payments: int
    out_for_delivery: int
    recent_orders: List[Order]


class PaymentStats(BaseModel):
    pending: int
    verified: int
    rejected: int
    verified_amount: Decimal


class CustomerDashboard(BaseModel):
    total_orders: int
    active_deliveries: int
    pending_payments: int
    recent_orders: List[Order]


def start_of_day(moment: datetime, store_timezone: tzinfo = timezone.utc) -> datetime:
    """Полночь дня, в который попадает moment, по времени магазина"""
    local = moment.astimezone(store_timezone)
    return local.replace(hour=0, minute=0, second=0, microsecond=0)


class ListOrdersUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, actor: Actor, order_filter: OrderFilter) -> List[Order]:
        require_admin(actor)
        if order_filter.status and order_filter.group:
            raise ValidationError("Укажите либо статус, либо группу статусов")

        statuses = None
        if order_filter.status:
            statuses = [order_filter.status]
        elif order_filter.group and order_filter.group != "all":
            statuses = sorted(lifecycle.resolve_group(order_filter.group), key=lambda s: s.value)

        async with self._uow() as uow:
            return await uow.orders.find(
                statuses=statuses,
                payment_statuses=[order_filter.payment_status] if order_filter.payment_status else None,
                payment_method=order_filter.payment_method,
                limit=order_filter.limit,
                offset=order_filter.offset,
            )


class GetTabCountsUseCase:
    """Количество заказов по каждой вкладке: all, каждый статус и каждая группа"""

    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, actor: Actor) -> dict[str, int]:
        require_admin(actor)
        async with self._uow() as uow:
            by_status = await uow.orders.count_by_status()

        counts = {"all": sum(by_status.values())}
        for status in OrderStatus:
            counts[status.value] = by_status.get(status, 0)
        for name, statuses in lifecycle.STATUS_GROUPS.items():
            counts[name] = sum(by_status.get(status, 0) for status in statuses)
        return counts


class GetDashboardStatsUseCase:
    def __init__(self, unit_of_work, clock: Clock = utc_now, store_timezone: tzinfo = timezone.utc):
        self._uow = unit_of_work
        self._clock = clock
        self._store_timezone = store_timezone

    async def __call__(self, actor: Actor, since: Optional[datetime] = None) -> DashboardStats:
        require_admin(actor)
        since = since or start_of_day(self._clock(), self._store_timezone)
        async with self._uow() as uow:
            return DashboardStats(
                today_orders=await uow.orders.count(created_from=since),
                pending_payments=await uow.orders.count(payment_statuses=[PaymentStatus.PENDING]),
                out_for_delivery=await uow.orders.count(statuses=[OrderStatus.OUT_FOR_DELIVERY]),
                recent_orders=await uow.orders.find(limit=5),
            )


class GetPaymentStatsUseCase:
    """Статистика по заказам с оплатой по QR коду"""

    def __init__(self, unit_of_work, clock: Clock = utc_now, store_timezone: tzinfo = timezone.utc):
        self._uow = unit_of_work
        self._clock = clock
        self._store_timezone = store_timezone

    async def __call__(self, actor: Actor, since: Optional[datetime] = None) -> PaymentStats:
        require_admin(actor)
        since = since or start_of_day(self._clock(), self._store_timezone)
        qr = PaymentMethod.QR_CODE
        async with self._uow() as uow:
            return PaymentStats(
                pending=await uow.orders.count(payment_method=qr, payment_statuses=[PaymentStatus.PENDING]),
                verified=await uow.orders.count(payment_method=qr, payment_statuses=[PaymentStatus.VERIFIED]),
                rejected=await uow.orders.count(payment_method=qr, payment_statuses=[PaymentStatus.REJECTED]),
                verified_amount=await uow.orders.sum_total(
                    payment_method=qr, payment_statuses=[PaymentStatus.VERIFIED], updated_from=since
                ),
            )


class GetCustomerDashboardUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, actor: Actor) -> CustomerDashboard:
        async with self._uow() as uow:
            return CustomerDashboard(
                total_orders=await uow.orders.count(user_id=actor.id),
                active_deliveries=await uow.orders.count(
                    user_id=actor.id, statuses=lifecycle.STATUS_GROUPS["active"]
                ),
                pending_payments=await uow.orders.count(
                    user_id=actor.id,
                    payment_method=PaymentMethod.QR_CODE,
                    payment_statuses=[PaymentStatus.PENDING],
                ),
                recent_orders=await uow.orders.find(user_id=actor.id, limit=3),
            )
