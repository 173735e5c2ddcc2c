import uuid
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional, List
from sqlalchemy import select, insert, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.domain.models import (
    Notification, NotificationType, Order, OrderItem, OrderStatus, PaymentMethod, PaymentStatus,
    StoreSettings
)
from storefront.infrastructure.db_schema import (
    orders_tbl, order_items_tbl, notifications_tbl, outbox_events_tbl, store_settings_tbl
)
from storefront.application.interfaces import (
    OrderRepository, NotificationRepository, OutboxRepository, StoreSettingsRepository
)


def _values(items) -> Optional[list]:
    if items is None:
        return None
    return [item.value for item in items]


class SQLAlchemyOrderRepository(OrderRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        result = await self._session.execute(
            select(orders_tbl).where(orders_tbl.c.id == order_id)
        )
        row = result.fetchone()
        if not row:
            return None
        items = await self._load_items([row.id])
        return self._to_domain(row, items.get(row.id, []))

    async def create(self, order: Order) -> None:
        stmt = insert(orders_tbl).values(
            id=order.id,
            display_code=order.display_code,
            user_id=order.user_id,
            status=order.status.value,
            payment_method=order.payment_method.value,
            payment_status=order.payment_status.value,
            payment_proof_url=order.payment_proof_url,
            subtotal=order.subtotal,
            delivery_fee=order.delivery_fee,
            total=order.total,
            address=order.address,
            phone=order.phone,
            delivery_instructions=order.delivery_instructions,
            delivery_date=order.delivery_date,
            delivered_at=order.delivered_at,
            version=order.version,
            created_at=order.created_at,
            updated_at=order.updated_at
        )
        await self._session.execute(stmt)

        if order.items:
            await self._session.execute(
                insert(order_items_tbl),
                [
                    {
                        "id": item.id,
                        "order_id": order.id,
                        "product_id": item.product_id,
                        "product_name": item.product_name,
                        "unit": item.unit,
                        "quantity": item.quantity,
                        "price": item.price,
                        "total": item.total,
                    }
                    for item in order.items
                ]
            )

    async def update_state(self, order: Order, expected_version: int) -> bool:
        # Суммы и позиции не обновляются никогда
        stmt = (
            update(orders_tbl)
            .where(
                orders_tbl.c.id == order.id,
                orders_tbl.c.version == expected_version
            )
            .values(
                status=order.status.value,
                payment_status=order.payment_status.value,
                payment_proof_url=order.payment_proof_url,
                delivery_date=order.delivery_date,
                delivered_at=order.delivered_at,
                version=expected_version + 1,
                updated_at=order.updated_at
            )
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def find(
        self,
        user_id: Optional[str] = None,
        statuses: Optional[Iterable[OrderStatus]] = None,
        payment_statuses: Optional[Iterable[PaymentStatus]] = None,
        payment_method: Optional[PaymentMethod] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Order]:
        query = self._filtered(
            select(orders_tbl),
            user_id=user_id,
            statuses=statuses,
            payment_statuses=payment_statuses,
            payment_method=payment_method,
        ).order_by(orders_tbl.c.created_at.desc()).offset(offset)
        if limit is not None:
            query = query.limit(limit)

        rows = (await self._session.execute(query)).fetchall()
        items = await self._load_items([row.id for row in rows])
        return [self._to_domain(row, items.get(row.id, [])) for row in rows]

    async def count_by_status(self) -> dict[OrderStatus, int]:
        result = await self._session.execute(
            select(orders_tbl.c.status, func.count()).group_by(orders_tbl.c.status)
        )
        return {OrderStatus(status): count for status, count in result.fetchall()}

    async def count(
        self,
        user_id: Optional[str] = None,
        statuses: Optional[Iterable[OrderStatus]] = None,
        payment_statuses: Optional[Iterable[PaymentStatus]] = None,
        payment_method: Optional[PaymentMethod] = None,
        created_from: Optional[datetime] = None,
    ) -> int:
        query = self._filtered(
            select(func.count()).select_from(orders_tbl),
            user_id=user_id,
            statuses=statuses,
            payment_statuses=payment_statuses,
            payment_method=payment_method,
        )
        if created_from is not None:
            query = query.where(orders_tbl.c.created_at >= created_from)
        result = await self._session.execute(query)
        return result.scalar_one()

    async def sum_total(
        self,
        payment_statuses: Optional[Iterable[PaymentStatus]] = None,
        payment_method: Optional[PaymentMethod] = None,
        updated_from: Optional[datetime] = None,
    ) -> Decimal:
        query = self._filtered(
            select(func.coalesce(func.sum(orders_tbl.c.total), 0)),
            payment_statuses=payment_statuses,
            payment_method=payment_method,
        )
        if updated_from is not None:
            query = query.where(orders_tbl.c.updated_at >= updated_from)
        result = await self._session.execute(query)
        return Decimal(str(result.scalar_one()))

    def _filtered(self, query, user_id=None, statuses=None, payment_statuses=None, payment_method=None):
        if user_id is not None:
            query = query.where(orders_tbl.c.user_id == user_id)
        if statuses is not None:
            query = query.where(orders_tbl.c.status.in_(_values(statuses)))
        if payment_statuses is not None:
            query = query.where(orders_tbl.c.payment_status.in_(_values(payment_statuses)))
        if payment_method is not None:
            query = query.where(orders_tbl.c.payment_method == payment_method.value)
        return query

    async def _load_items(self, order_ids: List[str]) -> dict[str, List[OrderItem]]:
        if not order_ids:
            return {}
        result = await self._session.execute(
            select(order_items_tbl).where(order_items_tbl.c.order_id.in_(order_ids))
        )
        items: dict[str, List[OrderItem]] = {}
        for row in result.fetchall():
            items.setdefault(row.order_id, []).append(OrderItem(
                id=row.id,
                order_id=row.order_id,
                product_id=row.product_id,
                product_name=row.product_name,
                unit=row.unit,
                quantity=row.quantity,
                price=row.price,
                total=row.total
            ))
        return items

    def _to_domain(self, row, items: List[OrderItem]) -> Order:
        """Трансформация DB → Domain"""
        return Order(
            id=row.id,
            display_code=row.display_code,
            user_id=row.user_id,
            status=OrderStatus(row.status),
            payment_method=PaymentMethod(row.payment_method),
            payment_status=PaymentStatus(row.payment_status),
            payment_proof_url=row.payment_proof_url,
            subtotal=row.subtotal,
            delivery_fee=row.delivery_fee,
            total=row.total,
            address=row.address,
            phone=row.phone,
            delivery_instructions=row.delivery_instructions,
            delivery_date=row.delivery_date,
            delivered_at=row.delivered_at,
            created_at=row.created_at,
            updated_at=row.updated_at,
            version=row.version,
            items=items
        )


class SQLAlchemyNotificationRepository(NotificationRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, notification: Notification) -> None:
        stmt = insert(notifications_tbl).values(
            id=notification.id,
            user_id=notification.user_id,
            type=notification.type.value,
            title=notification.title,
            message=notification.message,
            data=notification.data,
            read=notification.read,
            created_at=notification.created_at
        )
        await self._session.execute(stmt)

    async def list_for_user(self, user_id: str, unread_only: bool = False, limit: int = 50) -> List[Notification]:
        query = select(notifications_tbl).where(notifications_tbl.c.user_id == user_id)
        if unread_only:
            query = query.where(notifications_tbl.c.read.is_(False))
        result = await self._session.execute(
            query.order_by(notifications_tbl.c.created_at.desc()).limit(limit)
        )
        return [
            Notification(
                id=row.id,
                user_id=row.user_id,
                type=NotificationType(row.type),
                title=row.title,
                message=row.message,
                data=row.data or {},
                read=row.read,
                created_at=row.created_at
            )
            for row in result.fetchall()
        ]

    async def count_unread(self, user_id: str) -> int:
        result = await self._session.execute(
            select(func.count()).select_from(notifications_tbl).where(
                notifications_tbl.c.user_id == user_id,
                notifications_tbl.c.read.is_(False)
            )
        )
        return result.scalar_one()

    async def mark_as_read(self, notification_id: str, user_id: str) -> bool:
        stmt = (
            update(notifications_tbl)
            .where(
                notifications_tbl.c.id == notification_id,
                notifications_tbl.c.user_id == user_id
            )
            .values(read=True)
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0

    async def mark_all_as_read(self, user_id: str) -> int:
        stmt = (
            update(notifications_tbl)
            .where(
                notifications_tbl.c.user_id == user_id,
                notifications_tbl.c.read.is_(False)
            )
            .values(read=True)
        )
        result = await self._session.execute(stmt)
        return result.rowcount


class SQLAlchemyOutboxRepository(OutboxRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, event_type: str, event_data: dict, aggregate_id: str) -> str:
        event_id = str(uuid.uuid4())
        stmt = insert(outbox_events_tbl).values(
            id=event_id,
            event_type=event_type,
            event_data=event_data,  # SQLAlchemy JSON column сериализует автоматически
            aggregate_id=aggregate_id,
            status="pending"
        )
        await self._session.execute(stmt)
        return event_id

    async def get_pending(self, limit: int = 10) -> List[dict]:
        result = await self._session.execute(
            select(outbox_events_tbl)
            .where(outbox_events_tbl.c.status == "pending")
            .order_by(outbox_events_tbl.c.created_at.asc())
            .limit(limit)
        )
        rows = result.fetchall()

        return [
            {
                "id": row.id,
                "event_type": row.event_type,
                "event_data": row.event_data,
                "aggregate_id": row.aggregate_id
            }
            for row in rows
        ]

    async def mark_as_published(self, event_id: str) -> None:
        stmt = (
            update(outbox_events_tbl)
            .where(outbox_events_tbl.c.id == event_id)
            .values(status="published")
        )
        await self._session.execute(stmt)


class SQLAlchemyStoreSettingsRepository(StoreSettingsRepository):
    SETTINGS_ID = 1

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get(self) -> Optional[StoreSettings]:
        result = await self._session.execute(
            select(store_settings_tbl).where(store_settings_tbl.c.id == self.SETTINGS_ID)
        )
        row = result.fetchone()
        if not row:
            return None
        return StoreSettings(
            delivery_fee=row.delivery_fee,
            store_name=row.store_name,
            contact_phone=row.contact_phone,
            enable_cod=row.enable_cod,
            enable_qr_payment=row.enable_qr_payment
        )

    async def save(self, store_settings: StoreSettings) -> None:
        values = store_settings.model_dump()
        result = await self._session.execute(
            update(store_settings_tbl)
            .where(store_settings_tbl.c.id == self.SETTINGS_ID)
            .values(**values)
        )
        if result.rowcount == 0:
            await self._session.execute(
                insert(store_settings_tbl).values(id=self.SETTINGS_ID, **values)
            )
